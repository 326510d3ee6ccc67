"""
Generation Types

Request, mode and artifact value objects for the generation pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import ValidationError

MAX_DESCRIPTION_LENGTH = 4000


class ContentKind(str, Enum):
    """Kind of markup a request asks for."""

    GRAPHICS = "graphics"
    DOCUMENT = "document"

    @classmethod
    def parse(cls, value: Any) -> ContentKind:
        """
        Parse a wire value into a ContentKind.

        Accepts the legacy "svg"/"html" spellings as aliases.

        Raises:
            ValidationError: If the value is not a recognized kind
        """
        if value is None or value == "":
            return cls.GRAPHICS
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        alias = _KIND_ALIASES.get(normalized)
        if alias is None:
            raise ValidationError(
                f"Unknown contentKind: {value!r}",
                user_message="contentKind must be 'graphics' or 'document'",
            )
        return alias


_KIND_ALIASES = {
    "graphics": ContentKind.GRAPHICS,
    "svg": ContentKind.GRAPHICS,
    "document": ContentKind.DOCUMENT,
    "html": ContentKind.DOCUMENT,
}


@dataclass(frozen=True)
class CreateMode:
    """Generate a fresh artifact."""


@dataclass(frozen=True)
class ModifyMode:
    """Iterate on a previously generated artifact."""

    prior_output: str
    prior_description: str | None = None


GenerationMode = CreateMode | ModifyMode


@dataclass(frozen=True)
class GenerationRequest:
    """A validated generation request."""

    description: str
    content_kind: ContentKind = ContentKind.GRAPHICS
    mode: GenerationMode = CreateMode()
    provider: str | None = None
    model: str | None = None
    account_id: str | None = None

    @classmethod
    def create(
        cls,
        description: str,
        content_kind: ContentKind | str | None = None,
        *,
        prior_output: str | None = None,
        prior_description: str | None = None,
        provider: str | None = None,
        model: str | None = None,
        account_id: str | None = None,
    ) -> GenerationRequest:
        """
        Validate inputs and build a request, fixing its mode once.

        Raises:
            ValidationError: On empty/oversized description or unknown kind
        """
        if not isinstance(description, str) or not description.strip():
            raise ValidationError(
                "Description is empty", user_message="Description is required"
            )
        description = description.strip()
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description has {len(description)} characters",
                user_message=f"Description too long. Maximum {MAX_DESCRIPTION_LENGTH} characters.",
            )

        kind = ContentKind.parse(content_kind)

        mode: GenerationMode
        if prior_output and prior_output.strip():
            mode = ModifyMode(
                prior_output=prior_output.strip(),
                prior_description=(prior_description or "").strip() or None,
            )
        else:
            mode = CreateMode()

        return cls(
            description=description,
            content_kind=kind,
            mode=mode,
            provider=(provider or "").strip().lower() or None,
            model=(model or "").strip() or None,
            account_id=str(account_id) if account_id else None,
        )

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> GenerationRequest:
        """Build a request from the JSON body of POST /api/generate."""
        for key in ("provider", "model", "priorOutput", "priorDescription", "accountId"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValidationError(
                    f"{key} has type {type(value).__name__}",
                    user_message=f"{key} must be a string",
                )
        return cls.create(
            data.get("description", ""),
            data.get("contentKind") or data.get("contentType"),
            prior_output=data.get("priorOutput"),
            prior_description=data.get("priorDescription"),
            provider=data.get("provider"),
            model=data.get("model"),
            account_id=data.get("accountId"),
        )

    @property
    def is_modify(self) -> bool:
        return isinstance(self.mode, ModifyMode)


@dataclass(frozen=True)
class GeneratedArtifact:
    """Sanitized markup plus where it came from."""

    markup: str
    content_kind: ContentKind
    provider_used: str
    model_used: str


@dataclass(frozen=True)
class GenerationResult:
    """Artifact plus the account's remaining quota (-1 means unlimited)."""

    artifact: GeneratedArtifact
    remaining: int

    def to_dict(self) -> dict:
        return {
            "markup": self.artifact.markup,
            "contentKind": self.artifact.content_kind.value,
            "providerUsed": self.artifact.provider_used,
            "modelUsed": self.artifact.model_used,
            "remaining": self.remaining,
        }
