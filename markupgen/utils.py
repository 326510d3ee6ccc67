"""Utility functions."""

from flask import request


def parse_int_query_arg(
    name: str,
    *,
    default: int,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """Parse and validate integer query arguments."""
    raw = request.args.get(name, None)
    if raw in (None, ""):
        value = default
    else:
        try:
            value = int(raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{name} must be an integer") from exc

    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    if maximum is not None:
        value = min(value, maximum)
    return value


def page_metadata(page: int, per_page: int, total: int) -> dict:
    """Pagination fields for list responses."""
    return {
        "page": page,
        "per_page": per_page,
        "total": total,
        "pages": (total + per_page - 1) // per_page,
    }
