"""
StatusProbe - What the poll loop needs from a streaming platform

One call, one streamer, no state. The loop does not care how the request is
made (Helix, a cache, a test double); it only relies on this contract.
"""
from typing import Protocol, runtime_checkable

from alerts.models import StreamData


@runtime_checkable
class StatusProbe(Protocol):
    async def check(self, streamer_id: str) -> StreamData:
        """
        Query the current status of one streamer.

        Returns:
            StreamData with live=True and metadata, or live=False when offline

        Raises:
            TransientProbeError: network error, timeout, upstream 5xx
            RateLimitedProbeError: upstream rate limit hit
            PermanentProbeError: unknown streamer or rejected credentials
        """
        ...
