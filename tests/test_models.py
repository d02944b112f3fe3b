"""Tests for tarnertop data models."""

import os

import pytest

from tarnertop.models import (
    DiskUsage,
    HostStats,
    ProcessRecord,
    SortDimension,
    SortKey,
    Theme,
    cpu_percent,
    memory_percent,
)


def _record(**overrides) -> ProcessRecord:
    fields = dict(
        pid=123,
        parent_pid=1,
        name="test_process",
        cpu_usage=50.0,
        memory_usage=1024000,
        run_time=3600,
        status="Running",
        accumulated_cpu_time=2500,
        disk_usage=DiskUsage(1, 2, 3, 4),
    )
    fields.update(overrides)
    return ProcessRecord(**fields)


def test_process_record_creation():
    """Test ProcessRecord dataclass creation."""
    record = _record()

    assert record.pid == 123
    assert record.parent_pid == 1
    assert record.name == "test_process"
    assert record.cpu_usage == 50.0
    assert record.memory_usage == 1024000
    assert record.run_time == 3600
    assert record.status == "Running"
    assert record.accumulated_cpu_time == 2500
    assert record.disk_usage.total_written_bytes == 4


def test_process_record_is_frozen():
    """Test that ProcessRecord is immutable (frozen)."""
    record = _record()

    with pytest.raises(AttributeError):
        record.pid = 999


def test_process_record_uses_slots():
    """Slots-based dataclasses don't have __dict__."""
    assert not hasattr(_record(), "__dict__")


def test_disk_usage_defaults_to_zero():
    assert DiskUsage() == DiskUsage(0, 0, 0, 0)


def test_undecodable_name_keeps_raw_bytes():
    """Names with invalid UTF-8 survive as surrogate escapes."""
    raw = b"bad\xffname"
    record = _record(name=os.fsdecode(raw))

    assert record.raw_name == raw
    assert record.display_name == "bad\ufffdname"


def test_sort_key_dimension_and_direction():
    assert SortKey.NAME_DESC.dimension is SortDimension.NAME
    assert SortKey.NAME_DESC.descending
    assert not SortKey.MEM_ASC.descending
    assert SortKey.of(SortDimension.CPU) is SortKey.CPU_ASC
    assert SortKey.of(SortDimension.CPU, descending=True) is SortKey.CPU_DESC


def test_theme_toggled():
    assert Theme.DARK.toggled() is Theme.LIGHT
    assert Theme.LIGHT.toggled() is Theme.DARK


def test_cpu_percent_normalizes_by_cores():
    assert cpu_percent(_record(cpu_usage=200.0), 4) == 50.0
    assert cpu_percent(_record(), 0) == 0.0


def test_memory_percent():
    stats = HostStats(cpu_core_count=1, total_memory_bytes=2048000)
    assert memory_percent(_record(), stats.total_memory_bytes) == 50.0
    assert memory_percent(_record(), 0) == 0.0
