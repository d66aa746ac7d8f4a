"""
Per-session application context.

Holds the mutable state shared by the update resolver and the selection
coordinator, along with the reporting sinks. Create one per application
session and pass it to the components that need it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from flashsync.config import default_config
from flashsync.reporting import Analytics, ErrorReporter
from flashsync.selection.interfaces import SelectionStore
from flashsync.selection.state import SelectionState
from flashsync.update.interfaces import UpdateCheckState


@dataclass
class AppContext:
    config: Dict[str, Any] = field(default_factory=default_config)
    update_state: UpdateCheckState = field(default_factory=UpdateCheckState)
    selection: SelectionStore = field(default_factory=SelectionState)
    analytics: Analytics = field(default_factory=Analytics)
    errors: ErrorReporter = field(default_factory=ErrorReporter)

    @property
    def downloads_dir(self) -> str:
        return str(self.config["DOWNLOADS_DIR"])
