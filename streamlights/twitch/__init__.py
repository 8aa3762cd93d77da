"""Twitch REST clients: credential guard and Helix."""

from streamlights.twitch.auth import CredentialGuard
from streamlights.twitch.helix import HelixClient

__all__ = ["CredentialGuard", "HelixClient"]
