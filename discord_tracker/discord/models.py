"""Discord message payload models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List

from ..state.models import format_timestamp


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value, "inline": self.inline}


@dataclass
class EmbedFooter:
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass
class Embed:
    """Structured, styled message payload rendered by Discord."""
    title: str
    description: str
    color: int
    timestamp: datetime
    fields: List[EmbedField] = field(default_factory=list)
    footer: Optional[EmbedFooter] = None

    def field_value(self, name: str) -> Optional[str]:
        """Return the value of the first field called ``name``."""
        for embed_field in self.fields:
            if embed_field.name == name:
                return embed_field.value
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert Embed to the Discord wire format."""
        data = {
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "fields": [embed_field.to_dict() for embed_field in self.fields],
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.footer is not None:
            data["footer"] = self.footer.to_dict()
        return data


@dataclass
class DiscordMessage:
    """Body of a create or edit message request."""
    embeds: List[Embed] = field(default_factory=list)
    content: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "embeds": [embed.to_dict() for embed in self.embeds]
        }
        if self.content is not None:
            data["content"] = self.content
        return data
