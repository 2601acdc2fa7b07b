"""
Twitch authentication for the Helix probe

Two modes:
- App Token (client_id + client_secret), enough for Get Streams
- User Token (client_id + token [+ refresh_token])
"""
import logging
from typing import Optional

from twitchAPI.twitch import Twitch

from alerts.errors import ConfigError

LOGGER = logging.getLogger(__name__)


async def connect_twitch(
    client_id: str,
    client_secret: Optional[str] = None,
    token: Optional[str] = None,
    refresh_token: Optional[str] = None
) -> Twitch:
    """
    Build an authenticated Twitch instance.

    Args:
        client_id: Application client id (https://dev.twitch.tv/)
        client_secret: Application secret, enables App Token auth
        token: User access token, used when no secret is given
        refresh_token: User refresh token (auto-refresh needs a secret too)

    Raises:
        ConfigError: no usable credentials
    """
    if not client_id:
        raise ConfigError("Twitch client_id is required")

    if client_secret:
        twitch = await Twitch(client_id, client_secret)
        LOGGER.info("🔐 Twitch App Token acquired")
        if not token:
            return twitch
    elif token:
        twitch = await Twitch(client_id, authenticate_app=False)
        if not refresh_token:
            twitch.auto_refresh_auth = False
    else:
        raise ConfigError("Twitch client_secret or token is required")

    try:
        await twitch.set_user_authentication(
            token=token,
            scope=[],
            refresh_token=refresh_token,
            validate=True
        )
    except Exception as e:
        LOGGER.error(f"❌ Failed to set user authentication: {e}", exc_info=True)
        await twitch.close()
        raise ConfigError(f"Twitch user token rejected: {e}") from e

    LOGGER.info("🔐 Twitch User Token set")
    return twitch
