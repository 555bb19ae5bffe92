"""
Infrastructure: Logger Adapter

Exposes StructuredLogger through the application's ILogger protocol.
Use cases name events by string; the adapter resolves them to EventType.
"""

from typing import Any, Dict, Optional, Union

from gitmemo.logging_utils import StructuredLogger
from gitmemo.models import ComponentType, EventType


def resolve_event(name: Union[str, EventType]) -> Optional[EventType]:
    """EventType for a member name ("ACTION_FAILED") or value ("Action_Failed")."""
    if isinstance(name, EventType):
        return name
    try:
        return EventType[name]
    except KeyError:
        pass
    try:
        return EventType(name)
    except ValueError:
        return None


class LoggerAdapter:
    """ILogger over a StructuredLogger (APPLICATION component by default)."""

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self.logger = logger or StructuredLogger(ComponentType.APPLICATION)

    def log_message(
        self,
        trace_id: str,
        direction: str,
        message_type: str,
        payload: Dict[str, Any],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.logger.log_message(
            trace_id=trace_id,
            direction=direction,
            message_type=message_type,
            payload=payload,
            metadata=metadata or {},
        )

    def log_event(
        self,
        trace_id: str,
        event_type: Union[str, EventType],
        data: Dict[str, Any],
        metrics: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = resolve_event(event_type)
        if event is None:
            # Unknown names are dropped with a warning
            self.logger.logger.warning(f"Unknown event type {event_type}: {data}")
            return

        self.logger.log_event(
            trace_id=trace_id,
            event_type=event,
            payload=data,
            metrics=metrics or {},
        )

    def warning(self, message: str) -> None:
        self.logger.logger.warning(message)
