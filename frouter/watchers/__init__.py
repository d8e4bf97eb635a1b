"""Directory watching: raw watch backend, watch-set reconciliation, config loading."""

from .backend import (
    WatchBackend,
    WatchfilesBackend,
    WatchHandle,
    RawNotification,
    WatchFailure,
    ChannelItem,
)
from .watch_set import WatchSetManager, ReconcileResult
from .config_loader import (
    DEFAULT_CONFIG_PATH,
    load_config,
    ensure_config_exists,
    write_example_config,
)

__all__ = [
    "WatchBackend",
    "WatchfilesBackend",
    "WatchHandle",
    "RawNotification",
    "WatchFailure",
    "ChannelItem",
    "WatchSetManager",
    "ReconcileResult",
    # Config loading
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "ensure_config_exists",
    "write_example_config",
]
