"""
Diagnostic Event Bus

Append-only, capped log of pipeline activity with publish/subscribe.

Architectural Design:
- One ordered log per process, oldest entries evicted first
- Listeners receive a snapshot of the log after every change
- Outbound calls are correlated with their responses through request ids,
  the pending side table yields the response duration
- Nothing here raises on bad input: an unknown request id just produces a
  response without a duration
"""

import time
import uuid
import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, Union

from .json_encoder import json_dumps
from .schemas import DiagnosticEvent, DiagnosticEventType, EventStats

logger = logging.getLogger(__name__)

DEFAULT_EVENT_LOG_CAPACITY = 1000

EventListener = Callable[[List[DiagnosticEvent]], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _short_id() -> str:
    return uuid.uuid4().hex[:9]


def _truncate(text: str, limit: int) -> str:
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"


class DiagnosticEventBus:
    """
    Diagnostic event log with subscription support.

    Execution is single-threaded: every operation runs to completion before
    the next one starts, so there are no locks. Listener notification walks
    a copy of the listener set and hands out a copy of the log, a listener
    that (un)subscribes while being notified cannot disturb iteration.
    """

    def __init__(self, capacity: int = DEFAULT_EVENT_LOG_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._events: List[DiagnosticEvent] = []
        # dict keeps subscription order and set semantics
        self._listeners: Dict[EventListener, None] = {}
        self._request_timings: Dict[str, float] = {}

    # === Subscription ===

    def subscribe(self, callback: EventListener) -> Callable[[], None]:
        """
        Register a listener and immediately call it with the current log.

        Returns:
            Function that removes the listener again
        """
        self._listeners[callback] = None
        self._call_listener(callback, list(self._events))

        def unsubscribe() -> None:
            self._listeners.pop(callback, None)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = list(self._events)
        for listener in list(self._listeners):
            self._call_listener(listener, list(snapshot))

    def _call_listener(self, listener: EventListener, events: List[DiagnosticEvent]) -> None:
        try:
            listener(events)
        except Exception as e:
            logger.error(f"💥 EVENT BUS: listener {listener!r} failed: {e}")

    # === Recording ===

    def add_event(
        self,
        event_type: Union[DiagnosticEventType, str],
        label: str,
        data: Any = None,
        duration: Optional[int] = None,
    ) -> DiagnosticEvent:
        """Append an event, trim the log to capacity and notify listeners."""
        if duration is not None:
            duration = max(0, int(duration))

        event = DiagnosticEvent(
            id=f"{_now_ms()}-{_short_id()}",
            timestamp=_now_ms(),
            type=DiagnosticEventType(event_type),
            label=label,
            data=data,
            duration=duration,
        )

        self._events.append(event)
        if len(self._events) > self.capacity:
            del self._events[:len(self._events) - self.capacity]

        self._notify()
        return event

    def log_message(self, role: str, text: str, metadata: Any = None) -> DiagnosticEvent:
        arrow = '→' if role == 'user' else '←'
        return self.add_event(
            DiagnosticEventType.MESSAGE,
            f"{arrow} {role.upper()}: {_truncate(text, 50)}",
            {
                'role': role,
                'text': text,
                'length': len(text),
                'metadata': metadata,
            },
        )

    def start_api_request(self, url: str, method: str, body: Any = None) -> str:
        """
        Start tracking an outbound call.

        Returns:
            Request id to hand to log_api_response once the call finishes
        """
        request_id = f"req-{_now_ms()}-{_short_id()}"
        self._request_timings[request_id] = time.monotonic()

        self.add_event(
            DiagnosticEventType.API_REQUEST,
            f"{method} {url}",
            {
                'requestId': request_id,
                'method': method,
                'url': url,
                'body': body,
                'timestamp': _now_ms(),
            },
        )
        return request_id

    def log_api_response(
        self,
        request_id: str,
        status: Optional[int],
        data: Any = None,
        error: Any = None,
    ) -> DiagnosticEvent:
        """
        Record the response for a tracked call.

        The pending start time is consumed, so a second response for the
        same id carries no duration.
        """
        start_time = self._request_timings.pop(request_id, None)
        duration = None
        if start_time is not None:
            duration = max(0, int(round((time.monotonic() - start_time) * 1000)))

        failed = error is not None
        return self.add_event(
            DiagnosticEventType.ERROR if failed else DiagnosticEventType.API_RESPONSE,
            f"Response {status}{' (ERROR)' if failed else ''}",
            {
                'requestId': request_id,
                'status': status,
                'data': data,
                'error': self._describe_error(error) if failed else None,
                'success': not failed and isinstance(status, int) and 200 <= status < 300,
            },
            duration,
        )

    def log_action(self, action: str, target: Optional[str] = None, data: Any = None) -> DiagnosticEvent:
        return self.add_event(
            DiagnosticEventType.ACTION,
            f"{action}{f' → {target}' if target else ''}",
            {'action': action, 'target': target, 'data': data},
        )

    def log_component(self, component_name: str, event: str, props: Any = None) -> DiagnosticEvent:
        return self.add_event(
            DiagnosticEventType.COMPONENT,
            f"<{component_name}> {event}",
            {'componentName': component_name, 'event': event, 'props': props},
        )

    def log_session(self, event: str, session_id: Optional[str] = None, data: Any = None) -> DiagnosticEvent:
        return self.add_event(
            DiagnosticEventType.SESSION,
            f"Session: {event}",
            {'event': event, 'sessionId': session_id, 'data': data},
        )

    def log_error(self, message: str, error: Any = None, context: Any = None) -> DiagnosticEvent:
        return self.add_event(
            DiagnosticEventType.ERROR,
            f"ERROR: {message}",
            {'message': message, 'error': self._describe_error(error), 'context': context},
        )

    @staticmethod
    def _describe_error(error: Any) -> Any:
        if isinstance(error, BaseException):
            return {
                'name': type(error).__name__,
                'message': str(error),
                'stack': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            }
        return error

    # === Housekeeping ===

    def clear(self) -> None:
        """Empty the log and pending requests, then notify with an empty snapshot."""
        self._events = []
        self._request_timings.clear()
        self._notify()

    # === Queries ===

    def get_events(self) -> List[DiagnosticEvent]:
        return list(self._events)

    def get_events_by_type(self, event_type: Union[DiagnosticEventType, str]) -> List[DiagnosticEvent]:
        wanted = DiagnosticEventType(event_type)
        return [event for event in self._events if event.type == wanted]

    def get_recent_events(self, count: int = 10) -> List[DiagnosticEvent]:
        if count <= 0:
            return []
        return self._events[-count:]

    def export_as_json(self) -> str:
        """Serialize the log, in order, as an indented JSON array."""
        return json_dumps([event.to_dict() for event in self._events], indent=2)

    def get_stats(self) -> EventStats:
        by_type: Dict[str, int] = {}
        errors = 0
        total_response_time = 0
        response_count = 0

        for event in self._events:
            by_type[event.type.value] = by_type.get(event.type.value, 0) + 1

            if event.type == DiagnosticEventType.ERROR:
                errors += 1

            if event.type == DiagnosticEventType.API_RESPONSE and event.duration is not None:
                total_response_time += event.duration
                response_count += 1

        average = round(total_response_time / response_count) if response_count else 0
        return EventStats(
            total=len(self._events),
            by_type=by_type,
            errors=errors,
            average_response_time=average,
        )

    @property
    def pending_requests(self) -> int:
        return len(self._request_timings)

    def __len__(self) -> int:
        return len(self._events)


# Global instance for pipeline diagnostics
_global_event_bus: Optional[DiagnosticEventBus] = None


def get_global_event_bus() -> DiagnosticEventBus:
    """Get the global diagnostic event bus, created on first use"""
    global _global_event_bus
    if _global_event_bus is None:
        from .config import get_pipeline_config
        _global_event_bus = DiagnosticEventBus(capacity=get_pipeline_config().EVENT_LOG_CAPACITY)
    return _global_event_bus


def reset_global_event_bus() -> None:
    """Drop the global event bus so the next access starts empty"""
    global _global_event_bus
    _global_event_bus = None
