#!/usr/bin/env python3
"""Helix Status Probe - Get Streams for one login, with timeout handling

One Helix request per check, no retries (except one token refresh on 401):
the poll loop decides what to do with a failure from its class.

    timeout, connection error, 5xx   -> TransientProbeError
    429                              -> RateLimitedProbeError
    401/403, 404, 400                -> PermanentProbeError

The request is sent on our own aiohttp session with the credentials of the
twitchAPI instance. twitchAPI's get_streams() sleeps through a 429 and then
yields nothing, which would read as "offline".
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import aiohttp
from twitchAPI.twitch import Twitch
from twitchAPI.type import TwitchAPIException, TwitchBackendException

from alerts.errors import (
    PermanentProbeError,
    ProbeError,
    RateLimitedProbeError,
    TransientProbeError,
)
from alerts.models import StreamData

LOGGER = logging.getLogger(__name__)

HELIX_BASE_URL = "https://api.twitch.tv/helix/"


class HelixStatusProbe:
    """StatusProbe over Twitch Helix (App or User Token)."""

    def __init__(self, twitch: Twitch, timeout: float = 8.0):
        """
        Args:
            twitch: Authenticated Twitch API instance (credentials + token refresh)
            timeout: Helix request timeout in seconds
        """
        self.twitch = twitch
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        LOGGER.debug(f"HelixStatusProbe init (timeout={timeout}s)")

    @property
    def streams_url(self) -> str:
        base_url = getattr(self.twitch, "base_url", None) or HELIX_BASE_URL
        return base_url.rstrip("/") + "/streams"

    def _headers(self) -> Dict[str, str]:
        return {
            "Client-Id": self.twitch.app_id,
            "Authorization": f"Bearer {self.twitch.get_used_token()}",
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self):
        """Close the HTTP session (the Twitch instance is not touched)."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _fetch(self, user_login: str) -> Tuple[int, Optional[str], Any]:
        """GET /streams?user_login=... -> (status, Ratelimit-Reset, JSON body or None)"""
        session = self._get_session()
        async with session.get(
            self.streams_url,
            params={"user_login": user_login},
            headers=self._headers()
        ) as response:
            body = await response.json(content_type=None) if response.status == 200 else None
            return response.status, response.headers.get("Ratelimit-Reset"), body

    async def _request(self, streamer_id: str) -> Tuple[int, Optional[str], Any]:
        status, reset, body = await asyncio.wait_for(self._fetch(streamer_id), timeout=self.timeout)
        if status == 401 and getattr(self.twitch, "auto_refresh_auth", False) is True:
            LOGGER.info(f"🔄 Helix 401 checking {streamer_id}, refreshing token")
            await self.twitch.refresh_used_token()
            status, reset, body = await asyncio.wait_for(self._fetch(streamer_id), timeout=self.timeout)
        return status, reset, body

    async def check(self, streamer_id: str) -> StreamData:
        """Query Get Streams for one login.

        Args:
            streamer_id: Broadcaster login

        Returns:
            StreamData, live=False only when Helix answers 200 with no stream

        Raises:
            TransientProbeError, RateLimitedProbeError, PermanentProbeError
        """
        LOGGER.debug(f"[HELIX] GET streams?user_login={streamer_id}")
        try:
            status, reset, body = await self._request(streamer_id)
        except asyncio.TimeoutError as e:
            raise TransientProbeError(
                f"Timed out after {self.timeout}s checking {streamer_id}", streamer_id=streamer_id
            ) from e
        except TwitchBackendException as e:
            raise TransientProbeError(f"Twitch backend error refreshing token: {e}", streamer_id=streamer_id) from e
        except TwitchAPIException as e:
            raise PermanentProbeError(f"Token refresh rejected checking {streamer_id}: {e}", streamer_id=streamer_id) from e
        except aiohttp.ClientError as e:
            raise TransientProbeError(f"Connection error checking {streamer_id}: {e}", streamer_id=streamer_id) from e
        except ValueError as e:
            raise TransientProbeError(f"Unreadable Helix response for {streamer_id}: {e}", streamer_id=streamer_id) from e

        if status != 200:
            raise _classify_status(streamer_id, status, reset)

        streams = body.get("data") if isinstance(body, dict) else None
        if not isinstance(streams, list):
            raise TransientProbeError(f"Helix response without data checking {streamer_id}", streamer_id=streamer_id)

        observed_at = datetime.now(timezone.utc)
        if not streams:
            LOGGER.debug(f"Stream {streamer_id} offline")
            return StreamData.offline(streamer_id, observed_at)

        stream = streams[0]
        LOGGER.debug(f"Stream {streamer_id}: {stream.get('title')} ({stream.get('viewer_count')} viewers)")
        return StreamData(
            user_login=stream.get("user_login") or streamer_id,
            live=True,
            observed_at=observed_at,
            id=stream.get("id"),
            user_id=stream.get("user_id"),
            user_name=stream.get("user_name"),
            game_id=stream.get("game_id"),
            game_name=stream.get("game_name"),
            stream_type=stream.get("type"),
            title=stream.get("title"),
            viewer_count=stream.get("viewer_count"),
            started_at=_parse_datetime(stream.get("started_at")),
            language=stream.get("language"),
            thumbnail_url=stream.get("thumbnail_url"),
            tags=tuple(stream.get("tags") or ()),
            is_mature=stream.get("is_mature"),
        )


def _classify_status(streamer_id: str, status: int, reset: Optional[str]) -> ProbeError:
    if status == 429:
        return RateLimitedProbeError(
            f"Helix rate limit hit checking {streamer_id}",
            streamer_id=streamer_id,
            retry_after=_retry_after(reset)
        )
    if status >= 500:
        return TransientProbeError(f"Helix returned {status} checking {streamer_id}", streamer_id=streamer_id)
    return PermanentProbeError(f"Helix returned {status} checking {streamer_id}", streamer_id=streamer_id)


def _retry_after(reset: Optional[str]) -> Optional[float]:
    # Helix sends the bucket refill time as epoch seconds in Ratelimit-Reset
    if reset is None:
        return None
    try:
        return max(0.0, float(reset) - time.time())
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
