"""The reactive state controller."""

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass

from tarnertop.config import AppConfig
from tarnertop.messages import (
    CancelKill,
    ConfirmKill,
    ExportFinished,
    ExportRequested,
    HideToast,
    KeyPressed,
    LoadLogs,
    LogsLoaded,
    Message,
    ProcessSelected,
    RefreshTick,
    RequestKill,
    SearchChanged,
    SortRequested,
    TabSelected,
    ToggleTheme,
)
from tarnertop.models import HostInfo, HostStats, ProcessRecord, SortKey, Tab, ToastKind
from tarnertop.monitor import SnapshotProvider
from tarnertop.settings import AppSettings, SettingsStore
from tarnertop.table import ProcessTable
from tarnertop.tasks import ExportTask, HideToastTask, LoadLogsTask, Task

logger = logging.getLogger(__name__)

LOG_CAPACITY = 100
DELETE_KEY = "delete"


class LogRing:
    """Fixed-capacity FIFO of log lines; the oldest line is evicted first."""

    def __init__(self, capacity: int = LOG_CAPACITY) -> None:
        self._lines: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._lines.maxlen

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def push(self, line: str) -> None:
        self._lines.append(line)

    def replace(self, lines: Iterable[str]) -> None:
        """Swap in new contents, keeping only the newest lines that fit."""
        self._lines.clear()
        self._lines.extend(lines)

    def __len__(self) -> int:
        return len(self._lines)


@dataclass(slots=True, frozen=True)
class Toast:
    """Ephemeral status message."""

    message: str
    kind: ToastKind


class Controller:
    """
    Owns what the user currently sees.

    State changes only through ``update``, which applies one message and
    returns the tasks it wants run. The controller never blocks and never
    raises on bad input: unknown pids, missing parents and failed operations
    all end in ordinary state.
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        settings_store: SettingsStore,
        config: AppConfig | None = None,
    ) -> None:
        self._provider = provider
        self._settings_store = settings_store
        self._config = config or AppConfig()

        self.theme = settings_store.load().theme
        provider.refresh()
        snapshot = provider.snapshot()

        self.table = ProcessTable(snapshot.processes)
        self.host_stats: HostStats = snapshot.host_stats
        self.host_info: HostInfo = provider.host_info
        self.selected: ProcessRecord | None = None
        self.active_tab = Tab.PROCESSES
        self.kill_confirm_pending = False
        self.toast: Toast | None = None
        self.log_ring = LogRing()

        self._handlers = {
            ProcessSelected: self._on_process_selected,
            SearchChanged: self._on_search_changed,
            SortRequested: self._on_sort_requested,
            RefreshTick: self._on_refresh_tick,
            ToggleTheme: self._on_toggle_theme,
            TabSelected: self._on_tab_selected,
            RequestKill: self._on_request_kill,
            ConfirmKill: self._on_confirm_kill,
            CancelKill: self._on_cancel_kill,
            ExportRequested: self._on_export_requested,
            ExportFinished: self._on_export_finished,
            HideToast: self._on_hide_toast,
            LoadLogs: self._on_load_logs,
            LogsLoaded: self._on_logs_loaded,
            KeyPressed: self._on_key_pressed,
        }

        self._log(logging.INFO, "Application started")

    @property
    def processes(self) -> list[ProcessRecord]:
        return self.table.processes

    @property
    def filter_text(self) -> str:
        return self.table.filter_text

    @property
    def sort_key(self) -> SortKey:
        return self.table.sort_key

    @property
    def log_lines(self) -> list[str]:
        return self.log_ring.lines

    def filtered_view(self) -> list[ProcessRecord]:
        return self.table.filtered_view()

    def update(self, message: Message) -> list[Task]:
        """Apply one message. Returns tasks to dispatch."""
        handler = self._handlers.get(type(message))
        if handler is None:
            logger.warning("Ignoring unknown message: %r", message)
            return []
        return handler(message) or []

    def push_log(self, line: str) -> None:
        self.log_ring.push(line)

    def show_toast(self, message: str, kind: ToastKind) -> list[Task]:
        """Replace the toast and schedule its removal."""
        self.toast = Toast(message, kind)
        return [HideToastTask(delay=self._config.toast_duration)]

    def _log(self, level: int, message: str) -> None:
        logger.log(level, message)
        self.push_log(f"[{logging.getLevelName(level)}] {message}")

    def _on_process_selected(self, message: ProcessSelected) -> None:
        self.selected = self.table.find(message.pid)
        if self.selected is not None:
            self._log(logging.INFO, f"Selected process: {self.selected.display_name}")
        self.kill_confirm_pending = False

    def _on_search_changed(self, message: SearchChanged) -> None:
        self.table.filter_text = message.text
        self._log(logging.INFO, f"Set process filter to: {message.text}")

    def _on_sort_requested(self, message: SortRequested) -> None:
        key = self.table.request_sort(message.dimension)
        direction = "Descending" if key.descending else "Ascending"
        self._log(logging.INFO, f"Sort {key.dimension.name.title()} {direction}")

    def _on_refresh_tick(self, message: RefreshTick) -> None:
        self.table.replace(message.snapshot.processes)
        self.host_stats = message.snapshot.host_stats
        # Join on pid; positions change with every sort
        if self.selected is not None:
            self.selected = self.table.find(self.selected.pid)

    def _on_toggle_theme(self, message: ToggleTheme) -> None:
        self.theme = self.theme.toggled()
        self._log(logging.INFO, f"Changed to {self.theme.value} Theme")
        self._settings_store.save(AppSettings(theme=self.theme))

    def _on_tab_selected(self, message: TabSelected) -> list[Task]:
        self.active_tab = message.tab
        self._log(logging.INFO, f"Changed Tab to {message.tab.value}")
        if message.tab is Tab.SETTINGS:
            return [LoadLogsTask()]
        return []

    def _request_kill(self) -> None:
        if self.selected is None:
            return
        self.kill_confirm_pending = True
        self._log(logging.WARNING, f"Kill requested for: {self.selected.display_name}")

    def _on_request_kill(self, message: RequestKill) -> None:
        self._request_kill()

    def _on_key_pressed(self, message: KeyPressed) -> None:
        if message.key != DELETE_KEY:
            return
        if (
            self.active_tab is Tab.PROCESSES
            and not self.kill_confirm_pending
            and self.selected is not None
        ):
            self._request_kill()

    def _kill_selected_parent(self) -> tuple[bool, str]:
        """Kill the parent of the selected process. Returns (success, name)."""
        # TODO: confirm with product whether the selected process itself should be killed
        process = self.selected
        if process is None:
            return False, ""
        if process.parent_pid is None:
            return False, process.display_name
        return self._provider.kill(process.parent_pid), process.display_name

    def _on_confirm_kill(self, message: ConfirmKill) -> list[Task]:
        success, name = self._kill_selected_parent()
        self.kill_confirm_pending = False
        self.selected = None

        if success:
            text = f"Successfully killed parent of {name}"
            self._log(logging.INFO, text)
            return self.show_toast(text, ToastKind.SUCCESS)

        text = f"Failed to kill parent of {name}"
        self._log(logging.ERROR, text)
        return self.show_toast(text, ToastKind.ERROR)

    def _on_cancel_kill(self, message: CancelKill) -> None:
        self.kill_confirm_pending = False
        self._log(logging.INFO, "Kill canceled")

    def _on_export_requested(self, message: ExportRequested) -> list[Task]:
        self._log(logging.INFO, "Exporting to CSV...")
        task = ExportTask(
            processes=tuple(self.table.filtered_view()),
            host_stats=self.host_stats,
        )
        return self.show_toast("Exporting...", ToastKind.SUCCESS) + [task]

    def _on_export_finished(self, message: ExportFinished) -> list[Task]:
        if message.ok:
            self._log(logging.INFO, f"Export Success: {message.message}")
            return self.show_toast(message.message, ToastKind.SUCCESS)

        self._log(logging.ERROR, f"Export Failed: {message.message}")
        return self.show_toast(f"Error: {message.message}", ToastKind.ERROR)

    def _on_hide_toast(self, message: HideToast) -> None:
        # Stale timers are not filtered; any HideToast clears the current toast
        self.toast = None

    def _on_load_logs(self, message: LoadLogs) -> list[Task]:
        self.log_ring.replace(["Loading logs..."])
        return [LoadLogsTask()]

    def _on_logs_loaded(self, message: LogsLoaded) -> list[Task]:
        if message.error is not None:
            logger.error("Failed to load logs for view: %s", message.error)
            self.log_ring.replace([message.error])
            return self.show_toast(message.error, ToastKind.ERROR)

        lines = message.lines or ()
        logger.info("Successfully loaded %d log lines", len(lines))
        self.log_ring.replace(lines)
        return []
