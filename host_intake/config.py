# /host_intake/config.py
from __future__ import annotations

import os

from pydantic import BaseModel


class Settings(BaseModel):
    API_KEY: str | None = os.getenv("API_KEY")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Inventory / wizard state
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    INVENTORY_PREFIX: str = os.getenv("INVENTORY_PREFIX", "cluster")

    # Management server
    MANAGEMENT_URL: str = os.getenv("MANAGEMENT_URL", "http://localhost:8080")
    BOOTSTRAP_PATH: str = os.getenv("BOOTSTRAP_PATH", "/api/v1/bootstrap")
    SERVER_COMPONENT_PATH: str = os.getenv(
        "SERVER_COMPONENT_PATH", "/api/v1/services/AMBARI/components/AMBARI_SERVER"
    )
    TIMEOUT_SECONDS: float = float(os.getenv("TIMEOUT_SECONDS", "10.0"))
    JAVA_HOME_TIMEOUT_SECONDS: float = float(os.getenv("JAVA_HOME_TIMEOUT_SECONDS", "2.0"))

    # Host batches
    MAX_HOSTS: int = int(os.getenv("MAX_HOSTS", "2048"))

    # Install defaults
    SKIP_BOOTSTRAP: bool = os.getenv("SKIP_BOOTSTRAP", "false").lower() == "true"
    DEFAULT_JAVA_HOME: str = os.getenv("DEFAULT_JAVA_HOME", "/usr/jdk64/jdk1.8.0_112")
    DEFAULT_SSH_USER: str = os.getenv("DEFAULT_SSH_USER", "root")


settings = Settings()
