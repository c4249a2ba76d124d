"""Route decoded OSC messages to handlers by exact address."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .packet import Message, Packet

logger = logging.getLogger(__name__)

Handler = Callable[[Message], Any]


class Dispatcher:
    """Maps OSC addresses to handler callables.

    Addresses are matched literally; there is no wildcard matching. A
    handler that raises does not stop the remaining messages of a packet
    from being dispatched::

        dispatcher = Dispatcher()
        dispatcher.register("/volume", lambda msg: print(msg.arguments))
        dispatcher.dispatch(decode(datagram))
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} ({len(self._handlers)} addresses)>"

    def register(self, address: str, handler: Handler) -> None:
        """Install ``handler`` for ``address``, replacing any previous one."""
        self._handlers[address] = handler

    def dispatch(self, packet: Packet) -> None:
        """Dispatch every message reachable from ``packet``."""
        for message in packet.each_message():
            self._queue_message(message)

    def dispatch_message(self, message: Message) -> Exception | None:
        """Call the handler for ``message``, if any.

        Returns the exception raised by the handler, or ``None``.
        """
        handler = self._handlers.get(message.address)
        if handler is None:
            logger.debug("No handler for %s", message.address)
            return None
        try:
            handler(message)
        except Exception as exc:
            logger.exception("Handler error for %s", message.address)
            return exc
        return None

    def _queue_message(self, message: Message) -> None:
        # Subclasses may override to defer messages by their time.
        self.dispatch_message(message)
