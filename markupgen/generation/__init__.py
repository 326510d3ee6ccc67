"""
Generation Module

Turns a natural-language description into sanitized SVG or HTML markup,
enforcing the per-account usage entitlement.

Usage:
    from markupgen.generation import GenerationRequest, get_generation_orchestrator

    request = GenerationRequest.create("a spinning star", "graphics", account_id="acc-1")
    result = get_generation_orchestrator().generate(request)
"""

from .errors import (
    AccountNotFound,
    AuthenticationRequired,
    BackendAuthError,
    BackendRejected,
    BackendTransientError,
    GenerationCancelled,
    GenerationError,
    InvalidOutput,
    ModelNotAllowed,
    NoProviderConfigured,
    ProviderUnavailable,
    QuotaExceeded,
    ValidationError,
)
from .orchestrator import (
    GenerationOrchestrator,
    get_generation_orchestrator,
    init_generation_orchestrator,
)
from .prompts import build_prompt
from .quota import (
    UNLIMITED,
    AccountStore,
    QuotaLedger,
    QuotaStatus,
    SQLAlchemyAccountStore,
    UsageAccount,
    get_quota_ledger,
    init_quota_ledger,
)
from .sanitizer import NoValidFragmentError, clean_markup
from .types import (
    ContentKind,
    CreateMode,
    GeneratedArtifact,
    GenerationRequest,
    GenerationResult,
    ModifyMode,
)

__all__ = [
    # Types
    "ContentKind",
    "CreateMode",
    "ModifyMode",
    "GenerationRequest",
    "GeneratedArtifact",
    "GenerationResult",
    # Errors
    "GenerationError",
    "ValidationError",
    "AuthenticationRequired",
    "ProviderUnavailable",
    "NoProviderConfigured",
    "ModelNotAllowed",
    "QuotaExceeded",
    "AccountNotFound",
    "BackendTransientError",
    "BackendAuthError",
    "BackendRejected",
    "InvalidOutput",
    "GenerationCancelled",
    "NoValidFragmentError",
    # Pipeline pieces
    "build_prompt",
    "clean_markup",
    "UNLIMITED",
    "AccountStore",
    "QuotaLedger",
    "QuotaStatus",
    "SQLAlchemyAccountStore",
    "UsageAccount",
    "get_quota_ledger",
    "init_quota_ledger",
    "GenerationOrchestrator",
    "get_generation_orchestrator",
    "init_generation_orchestrator",
]
