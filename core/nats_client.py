"""
NATS JetStream Client for Python Microservices

Event envelope plus an event bus on nats-py. Subjects are the event type
(e.g. ``inventory.stock.released``); the stream is picked from the first
segment of the subject.
"""

import asyncio
import json
import logging
import os
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional

import nats
from nats.aio.client import Client as NATS
from nats.js import JetStreamContext
from nats.js.errors import BadRequestError

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles Decimal types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        return super().default(obj)


class Event:
    """Event model"""

    def __init__(
        self,
        event_type: str,
        source: str,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = getattr(event_type, "value", event_type)
        self.source = getattr(source, "value", source)
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        event = cls.__new__(cls)
        event.id = data.get("id")
        event.type = data.get("type")
        event.source = data.get("source")
        event.subject = data.get("subject")
        event.timestamp = data.get("timestamp")
        event.data = data.get("data", {})
        event.metadata = data.get("metadata", {})
        event.version = data.get("version", "1.0.0")
        return event


EventHandler = Callable[[Event], Awaitable[None]]


class NATSEventBus:
    """NATS JetStream event bus"""

    def __init__(self, service_name: str, nats_url: Optional[str] = None):
        self.service_name = service_name
        self.nats_url = nats_url or os.getenv("NATS_URL", "nats://localhost:4222")

        self._nc: Optional[NATS] = None
        self._js: Optional[JetStreamContext] = None
        self._streams: Dict[str, bool] = {}
        self._subscriptions: List[Any] = []

        logger.info(f"NATS EventBus initialized: {self.nats_url}")

    async def connect(self):
        try:
            self._nc = await nats.connect(self.nats_url, name=self.service_name)
            self._js = self._nc.jetstream()
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS: {e}")
            raise

    @staticmethod
    def _get_stream_name_for_event(event_type: str) -> str:
        """inventory.stock.released -> inventory-stream"""
        return f"{event_type.split('.')[0]}-stream"

    async def _ensure_stream(self, subject: str) -> str:
        prefix = subject.split(".")[0]
        stream_name = self._get_stream_name_for_event(prefix)
        if not self._streams.get(stream_name):
            try:
                await self._js.add_stream(name=stream_name, subjects=[f"{prefix}.>"])
            except BadRequestError as e:
                # Stream exists with a different config; publishing still works
                logger.debug(f"Stream creation note: {e}")
            self._streams[stream_name] = True
        return stream_name

    async def publish_event(self, event: Event) -> bool:
        """Publish an event to JetStream"""
        if not self.is_connected:
            logger.error("Not connected to NATS")
            return False

        try:
            subject = event.subject or event.type
            stream_name = await self._ensure_stream(subject)
            data = json.dumps(event.to_dict(), cls=DecimalEncoder).encode()
            ack = await self._js.publish(
                subject,
                data,
                headers={"event_id": event.id, "event_type": event.type, "source": event.source},
            )
            logger.info(f"Published event {event.type} [{event.id}] to stream {stream_name}, seq={ack.seq}")
            return True
        except Exception as e:
            logger.error(f"Error publishing event {event.id}: {e}")
            return False

    async def subscribe_to_events(
        self, pattern: str, handler: EventHandler, durable: Optional[str] = None
    ) -> Optional[str]:
        """
        Subscribe to events with a pattern using a durable JetStream consumer.

        The message is acked after the handler returns and nak'ed when it
        raises, so JetStream redelivers it.
        """
        if not self.is_connected:
            logger.error("Not connected to NATS")
            return None

        await self._ensure_stream(pattern)
        consumer_name = durable or f"{self.service_name}-{pattern}-consumer"

        async def _on_message(msg):
            try:
                payload = json.loads(msg.data.decode())
                if "type" in payload and "data" in payload:
                    event = Event.from_dict(payload)
                else:
                    event = Event(event_type=msg.subject, source="unknown", data=payload)
                await handler(event)
                await msg.ack()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error processing message on {msg.subject}: {e}")
                await msg.nak()

        subscription = await self._js.subscribe(
            pattern,
            cb=_on_message,
            durable=consumer_name.replace(".", "-").replace("*", "all").replace(">", "all"),
            manual_ack=True,
        )
        self._subscriptions.append(subscription)
        logger.info(f"Subscribed to {pattern} (JetStream consumer {consumer_name})")
        return consumer_name

    async def close(self):
        for subscription in self._subscriptions:
            try:
                await subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Error unsubscribing: {e}")
        self._subscriptions.clear()

        if self._nc is not None:
            await self._nc.drain()
            self._nc = None
            self._js = None
        logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS"""
        return self._nc is not None and self._nc.is_connected


# Singleton instance
_event_bus: Optional[NATSEventBus] = None


async def get_event_bus(service_name: str, nats_url: Optional[str] = None) -> NATSEventBus:
    """
    Get or create event bus instance.

    Args:
        service_name: Name of the service using the event bus
        nats_url: Optional NATS server URL (defaults to NATS_URL)

    Returns:
        Connected NATSEventBus instance
    """
    global _event_bus

    if _event_bus is None:
        _event_bus = NATSEventBus(service_name=service_name, nats_url=nats_url)
        await _event_bus.connect()

    return _event_bus
