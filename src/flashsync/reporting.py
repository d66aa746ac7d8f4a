"""
Error and telemetry sinks.

Both sinks are best-effort: a failure inside a sink is logged and swallowed so
it can never abort the operation that was reporting.
"""

from collections import deque
from dataclasses import asdict, is_dataclass
from typing import Any, Deque, Dict, Optional, Tuple

from flashsync.constants import ANALYTICS_EVENT_HISTORY
from flashsync.log_utils import logger


class ErrorReporter:
    """Shows user-facing errors. The default implementation logs them."""

    def show_error(self, title: str, description: str) -> None:
        logger.error(f"{title}: {description}")


class Analytics:
    """
    Records analytics events and exceptions at DEBUG level.

    Only the most recent `max_events` events are kept in memory.
    """

    def __init__(self, max_events: int = ANALYTICS_EVENT_HISTORY) -> None:
        self.events: Deque[Tuple[str, Dict[str, Any]]] = deque(maxlen=max_events)

    def log_event(self, name: str, data: Optional[Any] = None) -> None:
        payload = _to_payload(data)
        self.events.append((name, payload))
        logger.debug(f"Analytics event: {name} {payload}")

    def log_exception(self, error: BaseException) -> None:
        logger.debug(f"Analytics exception: {type(error).__name__}: {error}")


def _to_payload(data: Optional[Any]) -> Dict[str, Any]:
    if data is None:
        return {}
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, dict):
        return dict(data)
    return {"value": data}


def safe_show_error(reporter: ErrorReporter, title: str, description: str) -> None:
    """Call reporter.show_error(), logging instead of raising if the sink fails."""
    try:
        reporter.show_error(title, description)
    except Exception as exc:
        logger.warning(f"Error reporter failed while showing '{title}': {exc}")


def safe_log_event(analytics: Analytics, name: str, data: Optional[Any] = None) -> None:
    """Call analytics.log_event(), logging instead of raising if the sink fails."""
    try:
        analytics.log_event(name, data)
    except Exception as exc:
        logger.warning(f"Analytics sink failed for event '{name}': {exc}")


def safe_log_exception(analytics: Analytics, error: BaseException) -> None:
    """Call analytics.log_exception(), logging instead of raising if the sink fails."""
    try:
        analytics.log_exception(error)
    except Exception as exc:
        logger.warning(f"Analytics sink failed while logging exception: {exc}")
