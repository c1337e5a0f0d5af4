"""Named broadcast channels connecting fare surfaces within one process.

A :class:`BroadcastHub` plays the role of the shared transport. Every surface
(driver terminal, passenger display connection) opens its own
:class:`BroadcastChannel` handle on a channel name. Publishing on a handle
delivers to every other open handle with the same name; the publisher never
hears its own messages. Nothing is stored: a handle opened after a message was
sent never sees it.

When no hub is available the channel runs degraded and every operation is a
silent no-op.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Callable

from ..config import settings
from ..schemas.events import QuoteShown, FareConfirmed, FareReset, parse_event

logger = logging.getLogger(__name__)

FareEvent = QuoteShown | FareConfirmed | FareReset
EventHandler = Callable[[FareEvent], None]


class BroadcastHub:
    """Registry of open channel handles keyed by channel name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[str, list["BroadcastChannel"]] = defaultdict(list)

    def open(self, name: str | None = None) -> "BroadcastChannel":
        return BroadcastChannel(name or settings.broadcast_channel, hub=self)

    def _attach(self, handle: "BroadcastChannel") -> None:
        with self._lock:
            self._handles[handle.name].append(handle)

    def _detach(self, handle: "BroadcastChannel") -> None:
        with self._lock:
            handles = self._handles.get(handle.name, [])
            if handle in handles:
                handles.remove(handle)
            if not handles:
                self._handles.pop(handle.name, None)

    def _deliver(self, sender: "BroadcastChannel", event: FareEvent) -> int:
        with self._lock:
            targets = [handle for handle in self._handles.get(sender.name, []) if handle is not sender]
        for handle in targets:
            handle._receive(event)
        return len(targets)

    def open_handles(self, name: str) -> int:
        with self._lock:
            return len(self._handles.get(name, []))


class BroadcastChannel:
    """One surface's handle on a named channel."""

    def __init__(self, name: str, hub: BroadcastHub | None = None) -> None:
        self.name = name
        self._hub = hub
        self._handlers: list[EventHandler] = []
        self._handlers_lock = threading.Lock()
        self._closed = False
        if hub is None:
            logger.debug(f"Broadcast transport unavailable; channel '{name}' runs as a no-op")
        else:
            hub._attach(self)

    @property
    def degraded(self) -> bool:
        return self._hub is None

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: FareEvent) -> None:
        """Fire-and-forget delivery to every other open handle on this channel."""
        if self._hub is None or self._closed:
            return
        # Round-trip through JSON so every receiver gets exactly what a remote surface would.
        wire_event = parse_event(event.model_dump(mode="json"))
        delivered = self._hub._deliver(self, wire_event)
        logger.debug(f"Published {wire_event.type} on '{self.name}' to {delivered} handle(s)")

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler``; the returned callable removes it again."""
        if self._hub is None or self._closed:
            return lambda: None
        with self._handlers_lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._handlers_lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with self._handlers_lock:
            self._handlers.clear()
        if self._hub is not None:
            self._hub._detach(self)

    def _receive(self, event: FareEvent) -> None:
        with self._handlers_lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Fare event handler failed on channel '{self.name}'")


def open_channel(hub: BroadcastHub | None, name: str | None = None) -> BroadcastChannel:
    """Open a handle on ``hub``, or a degraded one when broadcasting is off."""
    channel_name = name or settings.broadcast_channel
    if hub is None or not settings.broadcast_enabled:
        return BroadcastChannel(channel_name, hub=None)
    return hub.open(channel_name)
