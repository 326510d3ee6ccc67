"""Blueprints package."""

from .accounts import accounts_bp
from .assets import assets_bp
from .generate import generate_bp
from .providers import providers_bp

__all__ = [
    "accounts_bp",
    "assets_bp",
    "generate_bp",
    "providers_bp",
]
