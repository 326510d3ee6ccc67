"""
Generation Orchestrator

Runs one generation request through quota check, provider resolution,
prompt building, the backend call, sanitizing and quota consumption.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from flask import current_app

from markupgen.ai.client import (
    AIClient,
    AIClientError,
    AIProviderError,
    APIKeyMissingError,
    BackendConnectionError,
    BackendTimeoutError,
    RateLimitError,
)
from markupgen.ai.models import AIResponse
from markupgen.ai.registry import (
    ModelNotAllowedError,
    ProviderRegistry,
    UnconfiguredProviderError,
)

from .errors import (
    AuthenticationRequired,
    BackendAuthError,
    BackendRejected,
    BackendTransientError,
    GenerationCancelled,
    InvalidOutput,
    ModelNotAllowed,
    NoProviderConfigured,
    ProviderUnavailable,
    QuotaExceeded,
)
from .prompts import build_prompt
from .quota import UNLIMITED, QuotaLedger
from .sanitizer import NoValidFragmentError, clean_markup
from .types import ContentKind, GeneratedArtifact, GenerationRequest, GenerationResult

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (RateLimitError, BackendTimeoutError, BackendConnectionError)


class GenerationOrchestrator:
    """
    Top-level coordinator for markup generation.

    The orchestrator never persists the artifact; callers store and display
    the returned GenerationResult.

    Usage:
        orchestrator = GenerationOrchestrator(registry, ledger, allow_anonymous=False)
        request = GenerationRequest.create("a bouncing ball", "graphics", account_id="acc-1")
        result = orchestrator.generate(request)
        result.artifact.markup, result.remaining
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        ledger: QuotaLedger,
        *,
        allow_anonymous: bool = False,
        prompt_builder: Callable[[GenerationRequest], str] = build_prompt,
        sanitizer: Callable[[str, ContentKind], str] = clean_markup,
    ):
        self.registry = registry
        self.ledger = ledger
        self.allow_anonymous = allow_anonymous
        self.prompt_builder = prompt_builder
        self.sanitizer = sanitizer

    def generate(
        self,
        request: GenerationRequest,
        cancel_event: threading.Event | None = None,
    ) -> GenerationResult:
        """
        Generate markup for a validated request.

        Args:
            request: GenerationRequest built with GenerationRequest.create
            cancel_event: Optional event; once set, the request stops before
                sanitizing and no quota is consumed

        Returns:
            GenerationResult with the artifact and remaining quota

        Raises:
            GenerationError subclass describing the terminal failure
        """
        account_id = request.account_id
        if account_id is None and not self.allow_anonymous:
            raise AuthenticationRequired("Anonymous generation is disabled")

        if account_id is not None:
            self._check_quota(account_id)

        provider, model, client = self._resolve_provider(request)
        prompt = self.prompt_builder(request)

        self._raise_if_cancelled(cancel_event, provider)
        response = self._invoke_backend(client, provider, model, prompt)
        self._raise_if_cancelled(cancel_event, provider)

        try:
            markup = self.sanitizer(response.content, request.content_kind)
        except NoValidFragmentError as e:
            logger.warning(
                f"Unusable output from provider={provider} model={model} "
                f"kind={request.content_kind.value}: {e}"
            )
            raise InvalidOutput(str(e)) from e

        remaining = UNLIMITED
        if account_id is not None:
            self.ledger.consume(account_id)
            remaining = self.ledger.check(account_id).remaining

        logger.info(
            f"Generated {request.content_kind.value} "
            f"({'modify' if request.is_modify else 'create'}) "
            f"with {provider}/{model} for account={account_id} "
            f"tokens_in={response.usage.get('input', 0)} "
            f"tokens_out={response.usage.get('output', 0)}"
        )

        return GenerationResult(
            artifact=GeneratedArtifact(
                markup=markup,
                content_kind=request.content_kind,
                provider_used=provider,
                model_used=model,
            ),
            remaining=remaining,
        )

    def _check_quota(self, account_id: str) -> None:
        status = self.ledger.check(account_id)
        if not status.allowed:
            raise QuotaExceeded(
                f"Account {account_id} has no remaining generations",
                remaining=status.remaining,
            )

    def _resolve_provider(self, request: GenerationRequest) -> tuple[str, str, AIClient]:
        provider = request.provider
        if provider is None:
            provider = self.registry.default_provider()
            if provider is None:
                raise NoProviderConfigured("No AI provider is allow-listed and credentialed")
        elif not self.registry.is_allowed(provider):
            raise ProviderUnavailable(f"Provider {provider} is not enabled")

        try:
            model = self.registry.resolve_model(provider, request.model)
            client = self.registry.resolve(provider)
        except ModelNotAllowedError as e:
            raise ModelNotAllowed(str(e)) from e
        except UnconfiguredProviderError as e:
            raise ProviderUnavailable(str(e)) from e

        return provider, model, client

    def _invoke_backend(
        self, client: AIClient, provider: str, model: str, prompt: str
    ) -> AIResponse:
        try:
            response = client.chat_sync(
                [{"role": "user", "content": prompt}],
                model=model,
            )
        except APIKeyMissingError as e:
            logger.error(f"Backend credential error: provider={provider} model={model}: {e}")
            raise BackendAuthError(str(e)) from e
        except TRANSIENT_ERRORS as e:
            logger.error(
                f"Backend call failed: provider={provider} model={model} "
                f"error={type(e).__name__}: {e}"
            )
            raise BackendTransientError(str(e)) from e
        except AIProviderError as e:
            logger.error(
                f"Backend returned an error: provider={provider} model={model} "
                f"status={e.status_code}: {e}"
            )
            if e.is_server_error:
                raise BackendTransientError(str(e)) from e
            raise BackendRejected(str(e)) from e
        except AIClientError as e:
            logger.exception(f"Backend client misconfigured: provider={provider}: {e}")
            raise BackendAuthError(str(e)) from e

        return response

    @staticmethod
    def _raise_if_cancelled(cancel_event: threading.Event | None, provider: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelled(f"Generation with {provider} cancelled by caller")


def init_generation_orchestrator(app: Flask) -> GenerationOrchestrator:
    """
    Wire the orchestrator to the app's registry and ledger.

    init_provider_registry and init_quota_ledger must run first.
    """
    orchestrator = GenerationOrchestrator(
        registry=app.extensions["provider_registry"],
        ledger=app.extensions["quota_ledger"],
        allow_anonymous=bool(app.config.get("ALLOW_ANONYMOUS", False)),
    )
    app.extensions["generation_orchestrator"] = orchestrator
    logger.info(
        f"Generation orchestrator initialized: allow_anonymous={orchestrator.allow_anonymous}"
    )
    return orchestrator


def get_generation_orchestrator() -> GenerationOrchestrator:
    """Get the orchestrator owned by the current app."""
    return current_app.extensions["generation_orchestrator"]
