"""Outbound message delivery."""

from .discord import DiscordNotifier, NotificationError

__all__ = ["DiscordNotifier", "NotificationError"]
