"""
AI Data Models

Dataclasses for AI responses and provider descriptors.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AIResponse:
    """Response from an AI provider."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderDescriptor:
    """An allow-listed backend and the models it may be asked for."""

    id: str
    configured: bool
    allowed_models: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert descriptor to the /api/providers entry shape."""
        return {
            "name": self.id,
            "configured": self.configured,
            "models": list(self.allowed_models),
        }
