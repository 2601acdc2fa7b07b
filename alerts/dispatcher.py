"""
📢 EventDispatcher - Delivers poll results to the application's handler

The handler is any object with on_stream/on_error (coroutines or plain
functions). Handler failures stop here: a raising on_stream becomes one
on_error(HandlerError), a raising on_error is only logged.
"""
import inspect
import logging
from typing import Any, Optional, Protocol, runtime_checkable

from alerts.errors import AlertsError, HandlerError
from alerts.models import Streamer, StreamData

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class EventHandler(Protocol):
    """
    Application capability consumed by the dispatcher.

    Both callbacks run on the poll loop and should return quickly.
    """

    def on_stream(self, streamer: Streamer, stream: StreamData) -> Any:
        """A streamer went live."""
        ...

    def on_error(self, error: AlertsError) -> Any:
        """A probe or a handler callback failed."""
        ...


class LoggingEventHandler:
    """Default handler: announces go-lives and errors in the log."""

    async def on_stream(self, streamer: Streamer, stream: StreamData):
        title = stream.title or "Untitled"
        game = stream.game_name or "Unknown category"
        LOGGER.info(f"🔴 {streamer.id} has gone live: {title} [{game}] ({stream.viewer_count or 0} viewers)")

    async def on_error(self, error: AlertsError):
        LOGGER.error(f"❌ {error.__class__.__name__}: {error}")


class EventDispatcher:
    """Invokes handler callbacks, isolating the poll loop from their failures."""

    def __init__(self, handler: EventHandler):
        self.handler = handler

    async def dispatch_live(self, streamer: Streamer, stream: StreamData) -> Optional[HandlerError]:
        """
        Deliver a "went live" event.

        Returns:
            The HandlerError reported through on_error if on_stream raised
        """
        try:
            await self._invoke(self.handler.on_stream, streamer, stream)
            return None
        except Exception as e:
            LOGGER.error(f"❌ on_stream handler failed for {streamer.id}: {e}", exc_info=True)
            error = HandlerError(
                f"on_stream handler failed for {streamer.id}: {e}",
                streamer_id=streamer.id,
                original=e
            )
            await self.dispatch_error(error)
            return error

    async def dispatch_error(self, error: AlertsError) -> Optional[HandlerError]:
        """
        Deliver an error event.

        Returns:
            A HandlerError if on_error itself raised (logged, not re-dispatched)
        """
        try:
            await self._invoke(self.handler.on_error, error)
            return None
        except Exception as e:
            LOGGER.error(f"❌ on_error handler failed while reporting {error!r}: {e}", exc_info=True)
            return HandlerError(f"on_error handler failed: {e}", streamer_id=error.streamer_id, original=e)

    @staticmethod
    async def _invoke(callback, *args):
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
