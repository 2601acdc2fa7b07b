"""
🚀 AlertsClient - Wires config, Helix probe, registry and poll loop together

    client = AlertsClient(load_config()).event_handler(MyHandler())
    await client.run()
"""
import logging
from typing import Optional

from alerts.config import AlertsConfig
from alerts.dispatcher import EventDispatcher, EventHandler
from alerts.errors import ConfigError
from alerts.probe import StatusProbe
from alerts.rate_limiter import RateLimiter
from alerts.registry import StreamerRegistry, StreamerStore
from alerts.scheduler import PollCycleScheduler

LOGGER = logging.getLogger(__name__)


class AlertsClient:
    """Builder-style facade over PollCycleScheduler."""

    def __init__(
        self,
        config: AlertsConfig,
        probe: Optional[StatusProbe] = None,
        registry: Optional[StreamerRegistry] = None,
        store: Optional[StreamerStore] = None
    ):
        """
        Args:
            config: Parsed configuration
            probe: Status probe; a HelixStatusProbe is built from the config if omitted
            registry: Prebuilt registry; otherwise built from config.streamers
            store: Durable store for a config-built registry (SQLite if config.db_path)
        """
        self.config = config
        self.probe = probe
        self._handler: Optional[EventHandler] = None
        self._twitch = None
        self._owns_probe = False

        if registry is None:
            if store is None and config.db_path:
                from alerts.storage import SQLiteStreamerStore
                store = SQLiteStreamerStore(config.db_path)
            registry = StreamerRegistry(store=store)
            # The config list is authoritative: stored streamers no longer listed are dropped
            registry.sync(config.streamers)
        self.registry = registry
        self.scheduler: Optional[PollCycleScheduler] = None

    def event_handler(self, handler: EventHandler) -> "AlertsClient":
        """Set the handler receiving go-live and error events."""
        self._handler = handler
        return self

    async def start(self):
        """Authenticate if needed and start the poll loop in the background."""
        if self._handler is None:
            raise ConfigError("No event handler set")
        if self.scheduler is not None and self.scheduler.is_running:
            LOGGER.warning("⚠️ AlertsClient already running")
            return

        if self.probe is None:
            self.config.validate()
            from helixapi import HelixStatusProbe, connect_twitch
            self._twitch = await connect_twitch(
                self.config.client_id,
                client_secret=self.config.client_secret,
                token=self.config.token,
                refresh_token=self.config.refresh_token
            )
            self.probe = HelixStatusProbe(self._twitch, timeout=self.config.helix_timeout)
            self._owns_probe = True

        self.scheduler = PollCycleScheduler(
            registry=self.registry,
            probe=self.probe,
            dispatcher=EventDispatcher(self._handler),
            rate_limiter=RateLimiter(self.config.min_interval),
            cycle_delay=self.config.cycle_delay,
            recheck_interval=self.config.recheck_interval
        )
        await self.scheduler.start()

    async def stop(self):
        """Stop the poll loop and release the Twitch session."""
        if self.scheduler is not None:
            await self.scheduler.stop()
        if self._owns_probe:
            await self.probe.close()
        if self._twitch is not None:
            await self._twitch.close()
            self._twitch = None

    async def run(self):
        """Start and block until the loop stops."""
        await self.start()
        try:
            await self.scheduler.wait_stopped()
        finally:
            await self.stop()
