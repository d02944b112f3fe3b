"""Process snapshot provider and refresh-tick thread for tarnertop."""

import logging
import platform
import threading
import time
from queue import Queue
from typing import Protocol

import psutil

from tarnertop.messages import Message, RefreshTick
from tarnertop.models import DiskUsage, HostInfo, HostStats, ProcessRecord, Snapshot

logger = logging.getLogger(__name__)


class SnapshotProvider(Protocol):
    """Source of process records and host facts."""

    host_info: HostInfo
    cpu_core_count: int
    total_memory_bytes: int

    def refresh(self) -> None: ...

    def get_processes(self) -> list[ProcessRecord]: ...

    def snapshot(self) -> Snapshot: ...

    def kill(self, pid: int) -> bool: ...


def _read_cpu_brand() -> str:
    """CPU model name, best effort."""
    try:
        with open("/proc/cpuinfo", encoding="utf-8") as f:
            for line in f:
                if line.lower().startswith("model name"):
                    return line.split(":", 1)[1].strip()
    except OSError:
        pass
    return platform.processor() or "N/A"


def collect_host_info() -> HostInfo:
    """Query static host facts once."""
    os_name = platform.system() or "N/A"
    os_version = platform.version() or "N/A"
    try:
        release = platform.freedesktop_os_release()
        os_name = release.get("NAME", os_name)
        os_version = release.get("VERSION_ID", os_version)
    except (OSError, AttributeError):
        pass

    return HostInfo(
        os_name=os_name,
        os_version=os_version,
        kernel_version=platform.release() or "N/A",
        hostname=platform.node() or "N/A",
        cpu_brand=_read_cpu_brand(),
    )


class PsutilProvider:
    """
    Snapshot provider backed by psutil.

    ``refresh()`` re-reads the process table into an internal cache which
    ``get_processes()`` returns. Disk read/write counters are deltas against
    the previous refresh.
    """

    def __init__(self) -> None:
        self._processes: list[ProcessRecord] = []
        self._io_totals: dict[int, tuple[int, int]] = {}
        self._attrs = [
            "pid",
            "ppid",
            "name",
            "status",
            "cpu_percent",
            "memory_info",
            "create_time",
            "cpu_times",
        ]
        if hasattr(psutil.Process, "io_counters"):
            self._attrs.append("io_counters")

        self.host_info = collect_host_info()
        self.cpu_core_count = psutil.cpu_count() or 1
        self.total_memory_bytes = psutil.virtual_memory().total
        self.used_memory_bytes = 0

        # First cpu_percent reading is always 0.0; prime it
        self.refresh()

    def refresh(self) -> None:
        """Re-read memory figures and the process table."""
        mem = psutil.virtual_memory()
        self.total_memory_bytes = mem.total
        self.used_memory_bytes = mem.used
        self._processes = self._collect_processes()

    def get_processes(self) -> list[ProcessRecord]:
        return list(self._processes)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            processes=tuple(self._processes),
            host_stats=HostStats(
                cpu_core_count=self.cpu_core_count,
                total_memory_bytes=self.total_memory_bytes,
                used_memory_bytes=self.used_memory_bytes,
            ),
        )

    def kill(self, pid: int) -> bool:
        """Send SIGKILL to a process. Returns False if the OS refused."""
        try:
            psutil.Process(pid).kill()
        except psutil.Error as e:
            logger.warning("Kill of pid %s failed: %s", pid, e)
            return False
        return True

    def _collect_processes(self) -> list[ProcessRecord]:
        """
        Collect records of all running processes.

        Processes that vanish mid-poll are skipped; fields psutil cannot read
        fall back to neutral defaults.
        """
        now = time.time()
        records: list[ProcessRecord] = []
        io_totals: dict[int, tuple[int, int]] = {}

        for proc in psutil.process_iter(attrs=self._attrs, ad_value=None):
            try:
                with proc.oneshot():
                    info = proc.info
                    pid = info["pid"]

                    ppid = info.get("ppid")
                    parent_pid = ppid if ppid and ppid != pid else None

                    mem_info = info.get("memory_info")
                    create_time = info.get("create_time")
                    run_time = max(0, int(now - create_time)) if create_time else 0

                    cpu_times = info.get("cpu_times")
                    acc_cpu = int((cpu_times.user + cpu_times.system) * 1000) if cpu_times else 0

                    disk = DiskUsage()
                    io = info.get("io_counters")
                    if io is not None:
                        prev_read, prev_written = self._io_totals.get(pid, (0, 0))
                        io_totals[pid] = (io.read_bytes, io.write_bytes)
                        disk = DiskUsage(
                            read_bytes=max(0, io.read_bytes - prev_read),
                            written_bytes=max(0, io.write_bytes - prev_written),
                            total_read_bytes=io.read_bytes,
                            total_written_bytes=io.write_bytes,
                        )

                    status = info.get("status") or "unknown"
                    records.append(
                        ProcessRecord(
                            pid=pid,
                            parent_pid=parent_pid,
                            name=info.get("name") or "",
                            cpu_usage=info.get("cpu_percent") or 0.0,
                            memory_usage=mem_info.rss if mem_info else 0,
                            run_time=run_time,
                            status=status.replace("-", " ").title(),
                            accumulated_cpu_time=acc_cpu,
                            disk_usage=disk,
                        )
                    )

            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        self._io_totals = io_totals
        return records


class SystemMonitor:
    """
    Background thread producing refresh ticks.

    Every ``poll_rate`` seconds it refreshes the provider and pushes a
    ``RefreshTick`` carrying the new snapshot onto the inbox.
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        inbox: Queue[Message],
        poll_rate: float = 1.0,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            provider: Where snapshots come from.
            inbox: Thread-safe queue the ticks are pushed to.
            poll_rate: Seconds between ticks. Default 1.0s.
        """
        self._provider = provider
        self._inbox = inbox
        self._poll_rate = max(0.1, poll_rate)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def poll_rate(self) -> float:
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the refresh thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SystemMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the refresh thread and wait for it."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._poll_rate):
            try:
                self._provider.refresh()
                self._inbox.put(RefreshTick(self._provider.snapshot()))
            except Exception:
                # One failed poll must not end the loop
                logger.exception("Snapshot refresh failed")
