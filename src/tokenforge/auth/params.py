"""Form parameter access for token requests.

Token requests arrive as a multi-valued mapping (``name -> list of values``)
so duplicated parameters can be rejected instead of silently collapsed.
"""

from collections.abc import Mapping, Sequence

from tokenforge.core.exceptions import InvalidRequest

FormParams = Mapping[str, Sequence[str]]


def require_param(params: FormParams, name: str) -> str:
    """Return the single non-empty value of ``name``.

    Raises:
        InvalidRequest: ``Missing <name>``, ``Empty <name>`` or
            ``Duplicate <name>``, checked in that order.
    """
    values = params.get(name) or []
    if not values:
        raise InvalidRequest(f"Missing {name}")
    if any(v == "" for v in values):
        raise InvalidRequest(f"Empty {name}")
    if len(values) > 1:
        raise InvalidRequest(f"Duplicate {name}")
    return values[0]


def optional_param(params: FormParams, name: str) -> str | None:
    """Return the value of ``name`` or None when absent or empty."""
    values = params.get(name) or []
    if len(values) > 1:
        raise InvalidRequest(f"Duplicate {name}")
    if not values or values[0] == "":
        return None
    return values[0]


def from_multi_items(items: Sequence[tuple[str, str]]) -> dict[str, list[str]]:
    """Group ``(name, value)`` pairs, as Starlette's form.multi_items() returns them."""
    params: dict[str, list[str]] = {}
    for key, value in items:
        params.setdefault(key, []).append(value)
    return params
