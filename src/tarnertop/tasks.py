"""Asynchronous units of work and the inbox that folds their results back."""

import csv
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue
from typing import TYPE_CHECKING

from tarnertop.config import AppConfig
from tarnertop.messages import ExportFinished, HideToast, LogsLoaded, Message
from tarnertop.models import HostStats, ProcessRecord, cpu_percent, memory_percent

if TYPE_CHECKING:
    from tarnertop.state import Controller

logger = logging.getLogger(__name__)

EXPORT_HEADER = [
    "PID",
    "Name",
    "Parent PID",
    "Status",
    "CPU %",
    "Memory %",
    "Memory (bytes)",
    "Disk Read (bytes)",
    "Disk Write (bytes)",
    "Runtime (sec)",
]


@dataclass(slots=True, frozen=True)
class ExportTask:
    """Export of the view as it was when requested."""

    processes: tuple[ProcessRecord, ...]
    host_stats: HostStats


@dataclass(slots=True, frozen=True)
class LoadLogsTask:
    pass


@dataclass(slots=True, frozen=True)
class HideToastTask:
    delay: float


Task = ExportTask | LoadLogsTask | HideToastTask


def export_row(proc: ProcessRecord, host_stats: HostStats) -> list[str]:
    """One CSV row for a process."""
    parent_pid = "N/A" if proc.parent_pid is None else str(proc.parent_pid)
    return [
        str(proc.pid),
        proc.display_name,
        parent_pid,
        proc.status,
        f"{cpu_percent(proc, host_stats.cpu_core_count):.2f}",
        f"{memory_percent(proc, host_stats.total_memory_bytes):.2f}",
        str(proc.memory_usage),
        str(proc.disk_usage.read_bytes),
        str(proc.disk_usage.written_bytes),
        str(proc.run_time),
    ]


def export_csv(
    processes: tuple[ProcessRecord, ...],
    host_stats: HostStats,
    path: Path,
) -> ExportFinished:
    """Write processes to a CSV file and report the outcome."""
    if not path.parent.is_dir():
        return ExportFinished(ok=False, message="Could not find download directory.")

    try:
        f = open(path, "w", newline="", encoding="utf-8")
    except OSError as e:
        return ExportFinished(ok=False, message=f"Failed to create file: {e}")

    # Buffered rows may only fail when the file is flushed on close
    try:
        with f:
            writer = csv.writer(f)
            try:
                writer.writerow(EXPORT_HEADER)
            except (OSError, csv.Error) as e:
                return ExportFinished(ok=False, message=f"Failed to write header: {e}")
            try:
                for proc in processes:
                    writer.writerow(export_row(proc, host_stats))
            except (OSError, csv.Error) as e:
                return ExportFinished(ok=False, message=f"Failed to write record: {e}")
    except (OSError, csv.Error) as e:
        return ExportFinished(ok=False, message=f"Failed to flush CSV: {e}")

    return ExportFinished(ok=True, message=f"Export successful to {path}")


def load_logs(path: Path) -> LogsLoaded:
    """Read the log file back as lines."""
    try:
        contents = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        return LogsLoaded(error=f"Failed to read log file: {e}")
    return LogsLoaded(lines=tuple(contents.splitlines()))


class TaskOrchestrator:
    """
    Owns the single inbox feeding the controller.

    Any thread may ``post`` a message. Only the consumer calls ``pump``, which
    applies queued messages one at a time in arrival order and dispatches the
    tasks each one returns. Task results come back through ``post``.
    """

    def __init__(self, controller: "Controller", config: AppConfig) -> None:
        self.controller = controller
        self.inbox: Queue[Message] = Queue()
        self._config = config

    def post(self, message: Message) -> None:
        """Enqueue a message. Thread-safe."""
        self.inbox.put(message)

    def pump(self) -> int:
        """Apply every queued message. Returns how many were applied."""
        applied = 0
        while True:
            try:
                message = self.inbox.get_nowait()
            except Empty:
                break
            for task in self.controller.update(message):
                self.dispatch(task)
            applied += 1
        return applied

    def dispatch(self, task: Task) -> None:
        """Start a task in the background. Tasks are never cancelled."""
        if isinstance(task, HideToastTask):
            timer = threading.Timer(task.delay, self.post, args=(HideToast(),))
            timer.daemon = True
            timer.start()
            return

        thread = threading.Thread(
            target=self._run,
            args=(task,),
            daemon=True,
            name=type(task).__name__,
        )
        thread.start()

    def run(self, task: Task) -> Message:
        """Execute a task synchronously and return its result message."""
        if isinstance(task, ExportTask):
            return export_csv(task.processes, task.host_stats, self._config.export_path)
        if isinstance(task, LoadLogsTask):
            return load_logs(self._config.log_path)
        if isinstance(task, HideToastTask):
            return HideToast()
        raise TypeError(f"Unknown task: {task!r}")

    def _run(self, task: Task) -> None:
        try:
            result = self.run(task)
        except Exception as e:
            logger.exception("Task %s failed", type(task).__name__)
            result = task_failure(task, e)
        self.post(result)


def task_failure(task: Task, error: Exception) -> Message:
    """The failure message a task reports when it raised instead of returning."""
    if isinstance(task, ExportTask):
        return ExportFinished(ok=False, message=f"Export failed: {error}")
    if isinstance(task, LoadLogsTask):
        return LogsLoaded(error=f"Failed to read log file: {error}")
    return HideToast()
