# tests/test_fastapi_api.py
from fastapi.testclient import TestClient

from host_intake.adapters.api.fastapi_app import create_app
from tests.fakes import FailingManagementClient, FakeInventory, FakeManagementClient


def _client(registered=(), request_id="7", bootstrap_enabled=True, mc=None):
    inv = FakeInventory(registered)
    mc = mc or FakeManagementClient(request_id)
    app = create_app(inventory=inv, client=mc, bootstrap_enabled=bootstrap_enabled)
    return TestClient(app), inv, mc


FORM = {"ssh_key": "KEY", "ssh_user": "root"}


def test_health():
    client, _, _ = _client()
    with client:
        assert client.get("/health").json() == {"status": "ok"}


def test_validate_reports_errors_and_preview():
    client, _, _ = _client(registered={"old.example.com"})
    with client:
        r = client.post("/hosts/validate", json={"host_names": "n[1-2].example.com old.example.com bad!", "ssh_key": ""})
    assert r.status_code == 200
    data = r.json()
    assert data["errors"]["ssh_key"] and data["errors"]["hosts"] is None
    assert data["batch"]["new_hosts"] == ["n1.example.com", "n2.example.com", "bad!"]
    assert data["batch"]["reentered_hosts"] == ["old.example.com"]
    assert data["batch"]["invalid_hosts"] == ["bad!"]
    assert data["batch"]["pattern_detected"] is True


def test_plain_submission_completes_in_one_call():
    client, inv, mc = _client()
    with client:
        r = client.post("/submissions", json={"host_names": "a.example.com", **FORM})
    assert r.status_code == 200
    data = r.json()
    assert data["state"] == "proceeding" and data["dialog"] is None
    assert data["result"]["outcome"]["status"] == "launched"
    assert data["result"]["outcome"]["request_id"] == "7"
    assert "a.example.com" in inv.hosts
    assert mc.closed


def test_blank_form_is_blocked():
    client, inv, _ = _client()
    with client:
        data = client.post("/submissions", json={"host_names": "  ", "ssh_key": ""}).json()
    assert data["state"] == "blocked"
    assert data["result"]["errors"]["hosts"]
    assert data["result"]["errors"]["ssh_key"]
    assert inv.saves == 0


def test_pattern_submission_waits_for_confirmation():
    client, inv, mc = _client(registered={"old.example.com"})
    with client:
        first = client.post("/submissions", json={"host_names": "n[1-2].example.com old.example.com", **FORM})
        data = first.json()
        sid = data["submission_id"]
        assert data["state"] == "pattern-confirm"
        assert data["dialog"]["kind"] == "pattern-list"
        assert data["dialog"]["payload"]["hosts"] == ["n1.example.com", "n2.example.com"]
        assert inv.saves == 0

        busy = client.post("/submissions", json={"host_names": "x.example.com", **FORM})
        assert busy.status_code == 409

        data = client.post(f"/submissions/{sid}/dialog", json={"confirmed": True}).json()
        assert data["dialog"]["kind"] == "reentered-list"

        data = client.post(f"/submissions/{sid}/dialog", json={"confirmed": True}).json()
        assert data["state"] == "proceeding"
        assert data["result"]["dialogs"] == ["pattern-list", "reentered-list"]
        assert client.get(f"/submissions/{sid}").json()["state"] == "proceeding"

    assert set(inv.hosts) == {"n1.example.com", "n2.example.com"}
    assert len(mc.payloads) == 1


def test_dismissed_dialog_returns_to_idle():
    client, inv, mc = _client()
    with client:
        sid = client.post("/submissions", json={"host_names": "n[1-3]", **FORM}).json()["submission_id"]
        data = client.post(f"/submissions/{sid}/dialog", json={"confirmed": False}).json()
        assert data["state"] == "idle"
        assert data["result"]["cancelled_at"] == "pattern-list"
        again = client.post(f"/submissions/{sid}/dialog", json={"confirmed": True})
        assert again.status_code == 409
    assert inv.saves == 0 and mc.payloads == []


def test_unknown_submission_is_404():
    client, _, _ = _client()
    with client:
        assert client.get("/submissions/notfound").status_code == 404
        assert client.post("/submissions/notfound/dialog", json={"confirmed": True}).status_code == 404


def test_oversized_range_is_rejected_on_validate(monkeypatch):
    from host_intake.config import settings

    monkeypatch.setattr(settings, "MAX_HOSTS", 5)
    client, _, _ = _client()
    with client:
        r = client.post("/hosts/validate", json={"host_names": "n[1-6].example.com", **FORM})
    assert r.status_code == 400
    assert "MAX_HOSTS" in r.json()["detail"]


def test_oversized_range_blocks_submission(monkeypatch):
    from host_intake.config import settings

    monkeypatch.setattr(settings, "MAX_HOSTS", 5)
    client, inv, mc = _client()
    with client:
        data = client.post("/submissions", json={"host_names": "n[1-6].example.com", **FORM}).json()
    assert data["state"] == "blocked"
    assert "at most 5" in data["result"]["errors"]["hosts"]
    assert inv.saves == 0 and mc.payloads == []


def test_dispatch_failure_is_502_and_persists_nothing():
    client, inv, mc = _client(mc=FailingManagementClient())
    with client:
        r = client.post("/submissions", json={"host_names": "a.example.com", **FORM})
        assert r.status_code == 502
        assert "bootstrap dispatch failed" in r.json()["detail"]
        # the flow has finished, so a new submission is accepted
        assert client.post("/submissions", json={"host_names": "  ", "ssh_key": ""}).status_code == 200
    assert len(mc.payloads) == 1
    assert inv.saves == 0 and inv.options == {}


def test_wizard_state_after_launch():
    client, _, _ = _client(request_id="42")
    with client:
        client.post("/submissions", json={"host_names": "a.example.com b.example.com", **FORM})
        data = client.get("/wizard").json()
    assert data["install_options"] == {"bootRequestId": "42", "javaHome": "/opt/jdk"}
    assert data["hosts"]["a.example.com"] == {
        "name": "a.example.com",
        "installType": "agentDriven",
        "bootStatus": "PENDING",
    }
    assert set(data["hosts"]) == {"a.example.com", "b.example.com"}


def test_wizard_state_is_empty_before_any_submission():
    client, _, _ = _client()
    with client:
        assert client.get("/wizard").json() == {"hosts": {}, "install_options": {}}
