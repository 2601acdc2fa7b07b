#!/usr/bin/env python3
"""
📡 PollCycleScheduler - Polling-based go-live detection

Walks the registry every `cycle_delay` seconds, probes each streamer that is
due (at most once per `recheck_interval`), throttles every probe through the
global RateLimiter, and dispatches a "went live" event on each
not-live -> live transition.

Per streamer:
    UNKNOWN|OFFLINE --live-->    LIVE      (event)
    LIVE            --live-->    LIVE      (metadata refresh only)
    any             --offline--> OFFLINE   (silent)
    any             --error-->   unchanged (error event)
"""
import asyncio
import logging
import time
from typing import Callable, Optional

from alerts.dispatcher import EventDispatcher
from alerts.errors import (
    AlertsError,
    ProbeError,
    RateLimitedProbeError,
    RegistryInconsistency,
    TransientProbeError,
)
from alerts.models import PollCycleResult, Streamer, StreamState
from alerts.probe import StatusProbe
from alerts.rate_limiter import MIN_REQUEST_INTERVAL, RateLimiter
from alerts.registry import StreamerRegistry

LOGGER = logging.getLogger(__name__)

DEFAULT_CYCLE_DELAY = 1.0
DEFAULT_RECHECK_INTERVAL = 30.0


class PollCycleScheduler:
    """
    Drives the poll loop on a dedicated asyncio task.

    Stopping is cooperative: the stop signal is checked between probes and at
    the cycle boundary, an in-flight probe always completes.
    """

    def __init__(
        self,
        registry: StreamerRegistry,
        probe: StatusProbe,
        dispatcher: EventDispatcher,
        rate_limiter: Optional[RateLimiter] = None,
        cycle_delay: float = DEFAULT_CYCLE_DELAY,
        recheck_interval: float = DEFAULT_RECHECK_INTERVAL,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            registry: Streamers to monitor
            probe: Status probe (Helix or test double)
            dispatcher: Delivers events to the application handler
            rate_limiter: Global probe throttle (default: MIN_REQUEST_INTERVAL)
            cycle_delay: Seconds to wait between two cycles
            recheck_interval: Minimum seconds between two probes of one streamer
            clock: Monotonic clock used for recheck and back-off bookkeeping
        """
        if cycle_delay < MIN_REQUEST_INTERVAL:
            LOGGER.warning(
                f"⚠️ cycle_delay {cycle_delay}s below the {MIN_REQUEST_INTERVAL}s floor, clamped"
            )
            cycle_delay = MIN_REQUEST_INTERVAL

        self.registry = registry
        self.probe = probe
        self.dispatcher = dispatcher
        self.rate_limiter = rate_limiter or RateLimiter()
        self.cycle_delay = cycle_delay
        self.recheck_interval = recheck_interval
        self._clock = clock

        # Upstream 429: no probe before this monotonic time
        self._backoff_until: Optional[float] = None

        # Control
        self._running = False
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

        LOGGER.info(
            f"📡 PollCycleScheduler initialized - {len(registry)} streamers, "
            f"cycle_delay={cycle_delay}s, recheck={recheck_interval}s, "
            f"min_interval={self.rate_limiter.min_interval * 1000:.0f}ms"
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def backoff_until(self) -> Optional[float]:
        return self._backoff_until

    async def start(self):
        """Start the poll loop on its own task."""
        if self._running:
            LOGGER.warning("⚠️ PollCycleScheduler already running")
            return

        self._running = True
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run())
        LOGGER.info("✅ PollCycleScheduler started")

    async def stop(self):
        """Request a stop and wait for the loop to wind down."""
        if not self._running:
            return

        LOGGER.info("🛑 Stopping PollCycleScheduler...")
        self._stop_event.set()

        if self._task and self._task is not asyncio.current_task():
            await self._task
            self._task = None

        LOGGER.info("✅ PollCycleScheduler stopped")

    async def wait_stopped(self):
        """Wait until the loop has exited (cancelling the waiter leaves the loop running)."""
        if self._task:
            await asyncio.shield(self._task)

    async def run(self):
        """Main poll loop, runs until stop() is requested."""
        self._running = True
        LOGGER.info(f"🔄 Poll loop started (cycle_delay={self.cycle_delay}s)")

        try:
            while not self._stop_event.is_set():
                try:
                    await self.run_cycle()
                except Exception as e:
                    LOGGER.error(f"❌ Poll cycle error: {e}", exc_info=True)
                    await self.dispatcher.dispatch_error(AlertsError(f"Poll cycle failed: {e}"))
                await self._wait(self.cycle_delay)
        except asyncio.CancelledError:
            LOGGER.debug("🛑 Poll loop cancelled")
            raise
        finally:
            self._running = False
            LOGGER.info("🔄 Poll loop exited")

    async def _wait(self, delay: float):
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def run_cycle(self) -> PollCycleResult:
        """
        Probe every due streamer once, in registry order.

        Returns:
            Transitions dispatched, errors reported and ids probed this cycle
        """
        result = PollCycleResult()

        if self._backoff_until is not None:
            remaining = self._backoff_until - self._clock()
            if remaining > 0:
                LOGGER.debug(f"⏸️ Upstream back-off active, skipping cycle ({remaining:.1f}s left)")
                return result
            self._backoff_until = None
            LOGGER.info("▶️ Upstream back-off over, resuming probes")

        for streamer in self.registry.list():
            if self._stop_event.is_set():
                LOGGER.debug("🛑 Stop requested, ending cycle early")
                break
            if not streamer.alerts_enabled or not self._is_due(streamer):
                continue

            await self.rate_limiter.acquire()
            if self._stop_event.is_set():
                break

            if await self._check_streamer(streamer, result):
                break

        if result.probed:
            LOGGER.debug(
                f"🔁 Cycle done: {len(result.probed)} probed, "
                f"{len(result.transitions)} went live, {len(result.errors)} errors"
            )
        return result

    def _is_due(self, streamer: Streamer) -> bool:
        if streamer.last_checked is None:
            return True
        return self._clock() - streamer.last_checked >= self.recheck_interval

    async def _check_streamer(self, streamer: Streamer, result: PollCycleResult) -> bool:
        """
        Probe one streamer, diff and dispatch.

        Returns:
            True when the rest of the cycle must be skipped (upstream back-off)
        """
        self.registry.mark_checked(streamer.id, self._clock())
        result.probed.append(streamer.id)
        LOGGER.debug(f"[PROBE] {streamer.id}")

        try:
            stream = await self.probe.check(streamer.id)
        except RateLimitedProbeError as e:
            backoff = e.retry_after if e.retry_after is not None else self.cycle_delay
            self._backoff_until = self._clock() + backoff
            LOGGER.warning(f"⏱️ Upstream rate limit on {streamer.id}, backing off {backoff:.1f}s")
            await self._report(e, result)
            return True
        except ProbeError as e:
            LOGGER.debug(f"❌ Probe failed for {streamer.id}: {e}")
            await self._report(e, result)
            return False
        except Exception as e:
            LOGGER.error(f"❌ Unexpected probe failure for {streamer.id}: {e}", exc_info=True)
            await self._report(
                TransientProbeError(f"Unexpected probe failure for {streamer.id}: {e}", streamer_id=streamer.id),
                result
            )
            return False

        previous = self.registry.update(streamer.id, stream)
        if previous is None:
            await self._report(
                RegistryInconsistency(f"Streamer {streamer.id} vanished from the registry during a cycle", streamer_id=streamer.id),
                result
            )
            return False

        if stream.live and previous is not StreamState.LIVE:
            # Went live
            LOGGER.info(f"🔴 {streamer.id}: STREAM ONLINE (was {previous.value})")
            current = self.registry.get(streamer.id) or streamer
            result.transitions.append((current, stream))
            handler_error = await self.dispatcher.dispatch_live(current, stream)
            if handler_error is not None:
                result.errors.append(handler_error)
        elif stream.live:
            LOGGER.info(f"🔄 [Refresh] {streamer.id} - Still Live ✅ ({stream.viewer_count or 0} viewers)")
        elif previous is StreamState.LIVE:
            LOGGER.info(f"💤 {streamer.id}: STREAM OFFLINE")
        else:
            LOGGER.debug(f"🔄 [Refresh] {streamer.id} - Offline ⚪")

        return False

    async def _report(self, error: AlertsError, result: PollCycleResult):
        result.errors.append(error)
        handler_error = await self.dispatcher.dispatch_error(error)
        if handler_error is not None:
            result.errors.append(handler_error)
