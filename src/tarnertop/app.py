"""tarnertop - Main Textual application."""

import logging
import sys

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Input,
    Static,
    TabbedContent,
    TabPane,
)

from tarnertop.config import AppConfig
from tarnertop.logger import init_logging, line_level
from tarnertop.messages import (
    CancelKill,
    ConfirmKill,
    ExportRequested,
    KeyPressed,
    LoadLogs,
    Message,
    ProcessSelected,
    RequestKill,
    SearchChanged,
    SortRequested,
    TabSelected,
    ToggleTheme,
)
from tarnertop.models import ProcessRecord, SortDimension, Tab, Theme, ToastKind, cpu_percent, memory_percent
from tarnertop.monitor import PsutilProvider, SnapshotProvider, SystemMonitor
from tarnertop.settings import SettingsStore
from tarnertop.state import Controller
from tarnertop.tasks import TaskOrchestrator

logger = logging.getLogger(__name__)

LOG_COLOURS = {"error": "red", "warn": "yellow", "info": "grey70"}

TEXTUAL_THEMES = {Theme.DARK: "textual-dark", Theme.LIGHT: "textual-light"}

COLUMN_KEYS = ("name", "pid", "cpu", "mem")


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_parent(proc: ProcessRecord) -> str:
    return "N/A" if proc.parent_pid is None else str(proc.parent_pid)


class ProcessTable(Vertical):
    """Process list with search, sort and kill controls."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
    }

    #controls {
        height: auto;
    }

    #search {
        width: 1fr;
    }

    #process-table {
        height: 1fr;
        border: solid $primary;
    }

    #details {
        height: auto;
        padding: 0 1;
    }

    #kill-confirm {
        display: none;
        height: auto;
        padding: 1;
        border: heavy $error;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()

    def compose(self) -> ComposeResult:
        yield Horizontal(
            Input(placeholder="Search processes...", id="search"),
            Button("End Task (Del)", id="end-task", variant="error"),
            Button("Name", id="sort-name"),
            Button("CPU", id="sort-cpu"),
            Button("Mem", id="sort-mem"),
            id="controls",
        )
        table = DataTable(id="process-table", cursor_type="row")
        table.add_column("Process Name", key="name", width=30)
        table.add_column("PID", key="pid", width=8)
        table.add_column("CPU %", key="cpu", width=8)
        table.add_column("Memory %", key="mem", width=9)
        yield table
        yield Static("", id="details")
        yield Vertical(
            Static("", id="kill-prompt"),
            Horizontal(
                Button("Yes, End Task", id="confirm-kill", variant="error"),
                Button("Cancel", id="cancel-kill"),
            ),
            id="kill-confirm",
        )

    def update_processes(self, controller: Controller) -> None:
        """
        Sync the table with the controller's filtered view.

        Existing rows are updated in place; only vanished and new pids
        remove or add rows.
        """
        table = self.query_one("#process-table", DataTable)
        stats = controller.host_stats
        view = controller.filtered_view()
        new_pids = {proc.pid for proc in view}

        for pid in self._current_pids - new_pids:
            table.remove_row(str(pid))

        for proc in view:
            row_key = str(proc.pid)
            cells = (
                Text(proc.display_name),
                row_key,
                f"{cpu_percent(proc, stats.cpu_core_count):.2f}",
                f"{memory_percent(proc, stats.total_memory_bytes):.2f}",
            )
            if proc.pid in self._current_pids:
                self._update_row(table, row_key, cells)
            else:
                table.add_row(*cells, key=row_key)

        self._current_pids = new_pids

        order = {str(proc.pid): index for index, proc in enumerate(view)}
        if [row.key.value for row in table.ordered_rows] != list(order):
            table.sort("pid", key=lambda pid: order[pid])

        if controller.selected is not None and str(controller.selected.pid) in order:
            row = order[str(controller.selected.pid)]
            if table.cursor_row != row:
                table.move_cursor(row=row, scroll=False)

    def _update_row(self, table: DataTable, row_key: str, cells: tuple) -> None:
        for column_key, value in zip(COLUMN_KEYS, cells):
            table.update_cell(row_key, column_key, value)

    def update_details(self, controller: Controller) -> None:
        details = self.query_one("#details", Static)
        confirm = self.query_one("#kill-confirm")
        proc = controller.selected

        if controller.kill_confirm_pending and proc is not None:
            self.query_one("#kill-prompt", Static).update(
                f"End parent process of '{escape(proc.display_name)}'?\n"
                f"This will kill the parent (PID: {format_parent(proc)}) "
                f"of the selected process (PID: {proc.pid})."
            )
            confirm.display = True
            details.display = False
            return

        confirm.display = False
        details.display = True
        if proc is None:
            details.update("")
            return

        stats = controller.host_stats
        disk = proc.disk_usage
        details.update(
            f"[b]Process Details[/b]\n"
            f"Name: {escape(proc.display_name)}\n"
            f"Status: {proc.status}    Runtime (h): {proc.run_time / 3600:.1f}\n"
            f"PID: {proc.pid}    Parent PID: {format_parent(proc)}\n"
            f"CPU %: {cpu_percent(proc, stats.cpu_core_count):.2f}    "
            f"Acc CPU time (ms): {proc.accumulated_cpu_time}\n"
            f"Memory: {format_bytes(proc.memory_usage).strip()}    "
            f"Memory %: {memory_percent(proc, stats.total_memory_bytes):.2f}\n"
            f"Read bytes new/total: {disk.read_bytes}/{disk.total_read_bytes}    "
            f"Written bytes new/total: {disk.written_bytes}/{disk.total_written_bytes}"
        )


class SystemInfo(Static):
    """Static host facts plus live memory figures."""

    def update_info(self, controller: Controller) -> None:
        info = controller.host_info
        stats = controller.host_stats
        self.update(
            "[b]System Information[/b]\n\n"
            f"OS:              {info.os_name}\n"
            f"OS Version:      {info.os_version}\n"
            f"Kernel Version:  {info.kernel_version}\n"
            f"Hostname:        {info.hostname}\n"
            f"CPU:             {info.cpu_brand}\n"
            f"Logical Cores:   {stats.cpu_core_count}\n"
            f"Total Memory:    {stats.total_memory_bytes // 1024 // 1024} MB\n"
            f"Used Memory:     {stats.used_memory_bytes // 1024 // 1024} MB"
        )


class LogView(Static):
    """Newest-first log lines coloured by level."""

    def update_lines(self, lines: list[str]) -> None:
        text = Text()
        for line in reversed(lines):
            text.append(line + "\n", style=LOG_COLOURS[line_level(line)])
        self.update(text)


class TarnerTopApp(App):
    """Main tarnertop application."""

    TITLE = "TarnerTop"
    SUB_TITLE = "Process Manager"

    CSS = """
    Screen {
        layout: vertical;
    }

    Horizontal {
        height: auto;
    }

    TabbedContent, ContentSwitcher, TabPane {
        height: 1fr;
    }

    #settings-buttons {
        height: auto;
    }

    #log-scroll {
        height: 1fr;
        border: solid $primary;
    }

    #toast {
        height: auto;
        padding: 0 2;
        background: $success-darken-2;
    }

    #toast.error {
        background: $error-darken-2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("delete", "delete_key", "End Task"),
        ("f5", "sort('name')", "Sort Name"),
        ("f6", "sort('cpu')", "Sort CPU"),
        ("f7", "sort('mem')", "Sort Mem"),
    ]

    def __init__(
        self,
        config: AppConfig | None = None,
        provider: SnapshotProvider | None = None,
        settings_store: SettingsStore | None = None,
    ) -> None:
        """Initialize the TarnerTopApp."""
        super().__init__()
        self._config = config or AppConfig.from_env()
        provider = provider or PsutilProvider()
        settings_store = settings_store or SettingsStore(self._config.settings_path)
        self.controller = Controller(provider, settings_store, self._config)
        self._orchestrator = TaskOrchestrator(self.controller, self._config)
        self._monitor = SystemMonitor(
            provider,
            self._orchestrator.inbox,
            poll_rate=self._config.refresh_interval,
        )

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        with TabbedContent(initial="processes"):
            with TabPane("Processes", id="processes"):
                yield ProcessTable()
            with TabPane("System", id="system"):
                yield SystemInfo("", id="system-info")
            with TabPane("Settings", id="settings"):
                yield Horizontal(
                    Button("Light Mode", id="toggle-theme"),
                    Button("Export to CSV", id="export", variant="success"),
                    Button("Reload Logs", id="reload-logs"),
                    id="settings-buttons",
                )
                with VerticalScroll(id="log-scroll"):
                    yield LogView("", id="log-view")
        yield Static("", id="toast")
        yield Footer()

    def on_mount(self) -> None:
        """Start the refresh thread and the inbox pump."""
        self._monitor.start()
        self.set_interval(0.1, self._check_for_updates)
        self._render_state()

    def on_unmount(self) -> None:
        self._monitor.stop()

    def send_to_controller(self, message: Message) -> None:
        """Post a UI message and apply it straight away."""
        self._orchestrator.post(message)
        self._check_for_updates()

    def _check_for_updates(self) -> None:
        """Apply queued messages and redraw if anything changed."""
        try:
            if self._orchestrator.pump():
                self._render_state()
        except Exception:
            # The UI loop must keep running
            logger.exception("Failed to apply messages")

    def _render_state(self) -> None:
        controller = self.controller
        self.theme = TEXTUAL_THEMES[controller.theme]

        process_table = self.query_one(ProcessTable)
        process_table.update_processes(controller)
        process_table.update_details(controller)

        self.query_one("#system-info", SystemInfo).update_info(controller)
        self.query_one("#log-view", LogView).update_lines(controller.log_lines)
        self.query_one("#toggle-theme", Button).label = (
            "Dark Mode" if controller.theme is Theme.LIGHT else "Light Mode"
        )

        toast = self.query_one("#toast", Static)
        if controller.toast is None:
            toast.display = False
        else:
            toast.update(Text(controller.toast.message))
            toast.set_class(controller.toast.kind is ToastKind.ERROR, "error")
            toast.display = True

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search":
            self.send_to_controller(SearchChanged(event.value))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.row_key.value is not None:
            self.send_to_controller(ProcessSelected(int(event.row_key.value)))

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        self.send_to_controller(TabSelected(Tab(event.pane.id.title())))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        actions = {
            "end-task": RequestKill(),
            "confirm-kill": ConfirmKill(),
            "cancel-kill": CancelKill(),
            "sort-name": SortRequested(SortDimension.NAME),
            "sort-cpu": SortRequested(SortDimension.CPU),
            "sort-mem": SortRequested(SortDimension.MEM),
            "toggle-theme": ToggleTheme(),
            "export": ExportRequested(),
            "reload-logs": LoadLogs(),
        }
        message = actions.get(event.button.id)
        if message is not None:
            self.send_to_controller(message)

    def action_delete_key(self) -> None:
        self.send_to_controller(KeyPressed("delete"))

    def action_sort(self, dimension: str) -> None:
        self.send_to_controller(SortRequested(SortDimension(dimension)))

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def main() -> None:
    """Entry point for tarnertop."""
    config = AppConfig.from_env()
    try:
        init_logging(config)
    except OSError as e:
        print(f"tarnertop: logging to file disabled: {e}", file=sys.stderr)
    app = TarnerTopApp(config)
    app.run()


if __name__ == "__main__":
    main()
