"""
helixapi/
=========

Twitch-specific side of StreamAlerts.

- auth.py : authenticated twitchAPI.Twitch instance (App or User Token)
- probe.py : HelixStatusProbe, the StatusProbe over Helix Get Streams
"""

from helixapi.auth import connect_twitch
from helixapi.probe import HelixStatusProbe

__all__ = ["connect_twitch", "HelixStatusProbe"]
