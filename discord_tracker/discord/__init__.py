# Discord Tracker Discord Integration
"""Discord REST client and embed rendering."""

from .client import DiscordClient
from .models import DiscordMessage, Embed, EmbedField, EmbedFooter
from .embeds import build_init_embed, build_step_update_embed, build_completion_embed

__all__ = [
    "DiscordClient",
    "DiscordMessage",
    "Embed",
    "EmbedField",
    "EmbedFooter",
    "build_init_embed",
    "build_step_update_embed",
    "build_completion_embed",
]
