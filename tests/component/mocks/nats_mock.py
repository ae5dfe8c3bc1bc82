"""
Event Bus Mock for Component Testing

Records published events and lets tests push inbound events at the
registered handlers.
"""
from typing import Any, Callable, Dict, List, Optional

from core.nats_client import Event


class MockEventBus:
    """In-memory stand-in for NATSEventBus"""

    def __init__(self):
        self.published_events: List[Dict[str, Any]] = []
        self.subscriptions: Dict[str, Callable] = {}
        self._error: Optional[Exception] = None
        self._reject = False

    async def publish_event(self, event: Event) -> bool:
        if self._error:
            raise self._error
        if self._reject:
            return False
        self.published_events.append({
            "id": event.id,
            "type": event.type,
            "source": event.source,
            "data": event.data,
        })
        return True

    async def subscribe_to_events(self, pattern: str, handler: Callable, durable: Optional[str] = None):
        self.subscriptions[pattern] = handler

    async def close(self):
        pass

    # Test helpers

    def set_error(self, error: Exception):
        """Raise ``error`` from every publish"""
        self._error = error

    def reject_publishes(self):
        """Make publish_event report failure without raising"""
        self._reject = True

    def clear_error(self):
        self._error = None
        self._reject = False

    def get_published(self, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        if event_type:
            return [e for e in self.published_events if e["type"] == event_type]
        return list(self.published_events)

    async def deliver(self, event_type: str, data: Dict[str, Any]) -> None:
        """Invoke the handler subscribed to ``event_type`` with a fresh envelope"""
        handler = self.subscriptions[event_type]
        await handler(Event(event_type=event_type, source="test", data=data))

    def assert_event_published(self, event_type: str, data_match: Optional[Dict] = None) -> Dict[str, Any]:
        """Return the first event of ``event_type`` whose data contains ``data_match``"""
        events = self.get_published(event_type)
        assert events, f"No '{event_type}' events published. Got: {self.published_events}"
        for event in events:
            if all(event["data"].get(k) == v for k, v in (data_match or {}).items()):
                return event
        raise AssertionError(f"No '{event_type}' event matched {data_match}. Events: {events}")

    def assert_no_events_published(self, event_type: Optional[str] = None):
        events = self.get_published(event_type)
        assert not events, f"Expected no events{f' of type {event_type}' if event_type else ''}, got: {events}"
