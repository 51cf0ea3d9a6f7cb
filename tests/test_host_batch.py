# tests/test_host_batch.py
from __future__ import annotations

import pytest

from host_intake.adapters.system.host_expander_impl import HostPatternExpander
from host_intake.adapters.system.hostname_validator import HostNameValidator
from host_intake.domain.host_batch import BatchResult, HostBatchProcessor
from host_intake.ports.host_expander import HostLimitExceededError
from tests.fakes import FakeRegistry


def _processor() -> HostBatchProcessor:
    return HostBatchProcessor(HostPatternExpander(), HostNameValidator())


def test_partitions_new_and_registered() -> None:
    res = _processor().process("a.example.com\nb.example.com", FakeRegistry({"b.example.com"}))
    assert res.new_hosts == ["a.example.com"]
    assert res.reentered_hosts == ["b.example.com"]
    assert res.invalid_hosts == []
    assert res.pattern_detected is False


def test_blank_input_is_empty_result() -> None:
    registry = FakeRegistry()
    assert _processor().process("  \n\t ", registry) == BatchResult()
    assert registry.queries == 0


def test_invalid_hosts_stay_in_new_hosts() -> None:
    res = _processor().process("not a host!!", FakeRegistry())
    assert res.new_hosts == ["not", "a", "host!!"]
    assert res.invalid_hosts == ["not", "a", "host!!"]


def test_pattern_flag_is_or_across_tokens() -> None:
    res = _processor().process("plain.example.com  node-[1-2].example.com", FakeRegistry())
    assert res.pattern_detected is True
    assert res.new_hosts == ["plain.example.com", "node-1.example.com", "node-2.example.com"]


def test_expanded_hosts_are_checked_against_registry() -> None:
    res = _processor().process("node-[01-03]", FakeRegistry({"node-02"}))
    assert res.new_hosts == ["node-01", "node-03"]
    assert res.reentered_hosts == ["node-02"]
    assert res.pattern_detected is True


def test_all_registered_yields_no_new_hosts() -> None:
    res = _processor().process("known1\nknown2", FakeRegistry({"known1", "known2"}))
    assert res.new_hosts == []
    assert res.reentered_hosts == ["known1", "known2"]


def test_duplicates_are_kept() -> None:
    res = _processor().process("a.example.com a.example.com\nb.example.com b.example.com", FakeRegistry({"b.example.com"}))
    assert res.new_hosts == ["a.example.com", "a.example.com"]
    assert res.reentered_hosts == ["b.example.com", "b.example.com"]


def test_reversed_range_is_passed_through_and_flagged_invalid() -> None:
    res = _processor().process("node-[05-02]", FakeRegistry())
    assert res.pattern_detected is False
    assert res.new_hosts == ["node-[05-02]"]
    assert res.invalid_hosts == ["node-[05-02]"]


def test_total_across_tokens_is_capped() -> None:
    processor = HostBatchProcessor(HostPatternExpander(max_hosts=10), HostNameValidator(), max_hosts=10)
    with pytest.raises(HostLimitExceededError):
        processor.process("a[1-6].example.com b[1-6].example.com", FakeRegistry())


def test_total_at_the_cap_is_accepted() -> None:
    processor = HostBatchProcessor(HostPatternExpander(max_hosts=10), HostNameValidator(), max_hosts=10)
    res = processor.process("a[1-5].example.com b[1-5].example.com", FakeRegistry())
    assert len(res.new_hosts) == 10
