"""
Data models for providers, model descriptors and discovery caches.

Static descriptors are constants. Dynamic descriptors are rebuilt on every
successful discovery fetch and replace the whole cached list for their source.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class SourceMode(Enum):
    """Where an Ollama model runs."""
    LOCAL = "local"
    CLOUD = "cloud"


@dataclass(frozen=True)
class Provider:
    """A model provider known to the catalog."""
    id: str
    name: str

    def to_dict(self, has_api_key: bool) -> dict:
        return {"id": self.id, "name": self.name, "hasApiKey": has_api_key}


@dataclass(frozen=True)
class ModelDescriptor:
    """Represents a single selectable model."""
    id: str
    display_name: str
    provider_id: str
    model_identifier: str
    description: str
    available: bool = True
    source_mode: Optional[SourceMode] = None

    @property
    def is_local(self) -> bool:
        return self.source_mode is SourceMode.LOCAL

    def with_availability(self, available: bool) -> "ModelDescriptor":
        return replace(self, available=available)

    def to_dict(self) -> dict:
        """Convert to the shape the UI layer consumes."""
        d = {
            "id": self.id,
            "name": self.display_name,
            "provider": self.provider_id,
            "model": self.model_identifier,
            "description": self.description,
            "available": self.available,
        }
        if self.source_mode is not None:
            d["ollamaMode"] = self.source_mode.value
        return d


@dataclass
class DiscoveryCache:
    """Cached result of one dynamic discovery source."""
    entries: list[ModelDescriptor] = field(default_factory=list)
    fetched_at: float = 0.0  # seconds since epoch; 0 means never / invalidated

    def is_fresh(self, now: float, ttl: float) -> bool:
        # An empty result is never fresh, so it is retried on the next request
        return bool(self.entries) and (now - self.fetched_at) < ttl

    def store(self, entries: list[ModelDescriptor], now: float) -> None:
        self.entries = list(entries)
        self.fetched_at = now

    def invalidate(self) -> None:
        self.fetched_at = 0.0

    def contains(self, model_id: str) -> bool:
        return any(m.id == model_id or m.model_identifier == model_id for m in self.entries)
