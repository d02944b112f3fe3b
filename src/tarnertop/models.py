"""Data models for tarnertop."""

import os
from dataclasses import dataclass, field
from enum import Enum


class SortDimension(Enum):
    """Column a sort request refers to."""

    NAME = "name"
    CPU = "cpu"
    MEM = "mem"


class SortKey(Enum):
    """Active ordering of the process table."""

    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    CPU_ASC = "cpu_asc"
    CPU_DESC = "cpu_desc"
    MEM_ASC = "mem_asc"
    MEM_DESC = "mem_desc"

    @property
    def dimension(self) -> SortDimension:
        """The column this key sorts on."""
        return SortDimension(self.value.split("_")[0])

    @property
    def descending(self) -> bool:
        """Whether the ordering is descending."""
        return self.value.endswith("_desc")

    @classmethod
    def of(cls, dimension: SortDimension, descending: bool = False) -> "SortKey":
        """Build the key for a dimension and direction."""
        return cls(f"{dimension.value}_{'desc' if descending else 'asc'}")


class Tab(Enum):
    """Top-level views."""

    PROCESSES = "Processes"
    SYSTEM = "System"
    SETTINGS = "Settings"


class ToastKind(Enum):
    """Severity of a toast."""

    SUCCESS = "Success"
    ERROR = "Error"


class Theme(Enum):
    """Persisted display theme."""

    LIGHT = "Light"
    DARK = "Dark"

    def toggled(self) -> "Theme":
        return Theme.LIGHT if self is Theme.DARK else Theme.DARK


@dataclass(slots=True, frozen=True)
class DiskUsage:
    """Disk I/O counters of a process."""

    read_bytes: int = 0  # Since previous refresh
    written_bytes: int = 0
    total_read_bytes: int = 0  # Lifetime
    total_written_bytes: int = 0


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of a process at refresh time."""

    pid: int
    parent_pid: int | None
    name: str  # Undecodable bytes kept as surrogate escapes
    cpu_usage: float  # Percent of one core, may exceed 100
    memory_usage: int  # Resident bytes
    run_time: int  # Seconds since start
    status: str
    accumulated_cpu_time: int  # Milliseconds
    disk_usage: DiskUsage = field(default_factory=DiskUsage)

    @property
    def raw_name(self) -> bytes:
        """The name as the OS reported it."""
        return os.fsencode(self.name)

    @property
    def display_name(self) -> str:
        """Printable name, lossy for undecodable bytes."""
        return self.raw_name.decode("utf-8", errors="replace")


@dataclass(slots=True, frozen=True)
class HostStats:
    """Aggregate host figures refreshed with every snapshot."""

    cpu_core_count: int
    total_memory_bytes: int
    used_memory_bytes: int = 0


@dataclass(slots=True, frozen=True)
class HostInfo:
    """Static host facts queried once at startup."""

    os_name: str = "N/A"
    os_version: str = "N/A"
    kernel_version: str = "N/A"
    hostname: str = "N/A"
    cpu_brand: str = "N/A"


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Point-in-time process list plus host stats."""

    processes: tuple[ProcessRecord, ...]
    host_stats: HostStats


def cpu_percent(record: ProcessRecord, cpu_core_count: int) -> float:
    """CPU usage normalized by core count."""
    if cpu_core_count <= 0:
        return 0.0
    return record.cpu_usage / cpu_core_count


def memory_percent(record: ProcessRecord, total_memory_bytes: int) -> float:
    """Resident memory as a percentage of host memory."""
    if total_memory_bytes <= 0:
        return 0.0
    return record.memory_usage / total_memory_bytes * 100.0
