"""
Synchronous event emitter for store notifications.

Handlers are kept in registration order and invoked one after another once
the triggering state transition has completed.
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Union

logger = logging.getLogger(__name__)


class StoreEvent(Enum):
    """Events published by the configuration store."""
    RELOAD = "reload"
    UPDATE = "update"
    ERROR = "error"


EventHandler = Callable[..., Any]


class EventEmitter:
    """
    Ordered handler registry.

    A failing handler is logged and does not prevent the remaining handlers
    from running. Coroutine handlers are scheduled on the running loop.
    """

    def __init__(self) -> None:
        self._handlers: Dict[StoreEvent, List[EventHandler]] = defaultdict(list)
        self._metrics: Dict[str, int] = {
            'events_emitted': 0,
            'handler_failures': 0,
        }

    @staticmethod
    def _coerce_event(event: Union[StoreEvent, str]) -> StoreEvent:
        if isinstance(event, StoreEvent):
            return event
        try:
            return StoreEvent(event)
        except ValueError:
            raise ValueError(
                f"Unknown event {event!r}; expected one of "
                f"{[e.value for e in StoreEvent]}") from None

    def on(self, event: Union[StoreEvent, str], handler: EventHandler) -> None:
        """Register ``handler`` for ``event``."""
        if not callable(handler):
            raise TypeError("Event handler must be callable")
        event = self._coerce_event(event)
        self._handlers[event].append(handler)
        logger.debug(f"Registered handler for '{event.value}': "
                     f"{getattr(handler, '__name__', repr(handler))}")

    def off(self, event: Union[StoreEvent, str], handler: EventHandler) -> bool:
        """Remove the first registration of ``handler``; return whether one existed."""
        event = self._coerce_event(event)
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def handler_count(self, event: Union[StoreEvent, str]) -> int:
        return len(self._handlers.get(self._coerce_event(event), []))

    def emit(self, event: Union[StoreEvent, str], *args: Any) -> None:
        """Invoke every handler of ``event`` with ``args`` in registration order."""
        event = self._coerce_event(event)
        self._metrics['events_emitted'] += 1

        # Copy so handlers may (un)register while we iterate.
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    self._schedule(result, event)
            except Exception as e:
                self._metrics['handler_failures'] += 1
                logger.error(f"Error in '{event.value}' handler "
                             f"{getattr(handler, '__name__', repr(handler))}: {e}")

    def _schedule(self, awaitable: Any, event: StoreEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"Async '{event.value}' handler ignored: no running event loop")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        task.add_done_callback(self._log_task_failure)

    def _log_task_failure(self, task: "asyncio.Future[Any]") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._metrics['handler_failures'] += 1
            logger.error(f"Async event handler failed: {error}")

    def get_metrics(self) -> Dict[str, int]:
        return {
            **self._metrics,
            'subscriptions_count': sum(len(h) for h in self._handlers.values()),
        }
