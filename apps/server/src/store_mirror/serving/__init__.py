from .coordinator import Phase, ShutdownCoordinator, ShutdownError
from .reloader import ReloadLoop
from .snapshot import ServerSnapshot, SnapshotObject, load_snapshot
from .state import ServerState

__all__ = [
    "Phase",
    "ReloadLoop",
    "ServerSnapshot",
    "ServerState",
    "ShutdownCoordinator",
    "ShutdownError",
    "SnapshotObject",
    "load_snapshot",
]
