"""Publish/subscribe bus connecting pipelines, the session app and observers."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

SyncHandler = Callable[..., None]
AsyncHandler = Callable[..., Coroutine[Any, Any, None]]
Handler = SyncHandler | AsyncHandler


def _name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", repr(handler))


class EventBus:
    """Dispatches keyword-argument events to sync and async handlers.

    Events are dot-separated names such as ``pipeline.device_report`` or
    ``session.transition``. A failing handler is logged and does not stop the
    remaining handlers. Each bus is owned by whoever created it; there is no
    process-wide instance.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, event: str, handler: Handler) -> None:
        """Subscribe a handler to an event."""
        self._handlers[event].append(handler)
        logger.debug("Registered handler %s for event '%s'", _name(handler), event)

    def off(self, event: str, handler: Handler) -> None:
        """Unsubscribe a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def emit(self, event: str, **kwargs: Any) -> None:
        """Call sync handlers now and schedule async ones on the running loop."""
        for handler in list(self._handlers.get(event, [])):
            try:
                if inspect.iscoroutinefunction(handler):
                    try:
                        loop = asyncio.get_running_loop()
                    except RuntimeError:
                        logger.warning(
                            "Cannot schedule async handler %s for '%s': no running event loop",
                            _name(handler),
                            event,
                        )
                        continue
                    loop.create_task(handler(**kwargs))
                else:
                    handler(**kwargs)
            except Exception:
                logger.exception("Error in handler %s for event '%s'", _name(handler), event)

    async def emit_async(self, event: str, **kwargs: Any) -> None:
        """Call every handler in order, awaiting async ones."""
        handlers = list(self._handlers.get(event, []))
        if handlers:
            logger.debug("Async-emitting '%s' to %d handler(s)", event, len(handlers))
        for handler in handlers:
            try:
                result = handler(**kwargs)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Error in handler %s for event '%s'", _name(handler), event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
