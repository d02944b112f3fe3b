"""Messages delivered to the controller through the inbox."""

from dataclasses import dataclass

from tarnertop.models import Snapshot, SortDimension, Tab


@dataclass(slots=True, frozen=True)
class ProcessSelected:
    pid: int


@dataclass(slots=True, frozen=True)
class SearchChanged:
    text: str


@dataclass(slots=True, frozen=True)
class SortRequested:
    dimension: SortDimension


@dataclass(slots=True, frozen=True)
class RefreshTick:
    """Periodic tick carrying the freshly collected snapshot."""

    snapshot: Snapshot


@dataclass(slots=True, frozen=True)
class ToggleTheme:
    pass


@dataclass(slots=True, frozen=True)
class TabSelected:
    tab: Tab


@dataclass(slots=True, frozen=True)
class RequestKill:
    pass


@dataclass(slots=True, frozen=True)
class ConfirmKill:
    pass


@dataclass(slots=True, frozen=True)
class CancelKill:
    pass


@dataclass(slots=True, frozen=True)
class ExportRequested:
    pass


@dataclass(slots=True, frozen=True)
class ExportFinished:
    """Result of an export task."""

    ok: bool
    message: str


@dataclass(slots=True, frozen=True)
class HideToast:
    pass


@dataclass(slots=True, frozen=True)
class LoadLogs:
    pass


@dataclass(slots=True, frozen=True)
class LogsLoaded:
    """Result of a log load task. Exactly one of the fields is set."""

    lines: tuple[str, ...] | None = None
    error: str | None = None


@dataclass(slots=True, frozen=True)
class KeyPressed:
    key: str


Message = (
    ProcessSelected
    | SearchChanged
    | SortRequested
    | RefreshTick
    | ToggleTheme
    | TabSelected
    | RequestKill
    | ConfirmKill
    | CancelKill
    | ExportRequested
    | ExportFinished
    | HideToast
    | LoadLogs
    | LogsLoaded
    | KeyPressed
)
