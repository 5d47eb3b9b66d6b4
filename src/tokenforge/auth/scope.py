"""Scope parsing and validation."""

from collections.abc import Sequence

from tokenforge.core.exceptions import InvalidScope


def parse_scope(value: str | None) -> list[str] | None:
    """Split a space-separated scope parameter, None when absent."""
    if value is None:
        return None
    return value.split()


def format_scope(scope: Sequence[str]) -> str:
    return " ".join(scope)


def validate_scope(
    requested: Sequence[str] | None, allowed: Sequence[str]
) -> list[str]:
    """Compute the effective scope of a request.

    Args:
        requested: Scope from the request, in caller order, or None when the
            request carried no scope parameter
        allowed: Scope the client (or the grant being refreshed) allows

    Returns:
        ``allowed`` when nothing was requested, otherwise ``requested``

    Raises:
        InvalidScope: If ``requested`` is not a subset of ``allowed``
    """
    if requested is None:
        return list(allowed)
    if not set(requested).issubset(allowed):
        raise InvalidScope(
            f"Requested scope ({format_scope(requested)}) "
            f"exceeds allowed scope ({format_scope(allowed)})"
        )
    return list(requested)
