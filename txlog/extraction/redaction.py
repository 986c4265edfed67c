from __future__ import annotations

from typing import Any, Iterable, Union

JsonValue = Union[dict[str, Any], list[Any], str, int, float, bool, None]

MASK = "******"


def mask_fields(node: JsonValue, field_names: Iterable[str] | None) -> JsonValue:
    """Replace the values of top-level keys named in ``field_names`` with ``MASK``.

    Only the first level of a JSON object is inspected; nested objects are
    returned untouched. Matching is case-sensitive. Arrays and scalars pass
    through unchanged, as does everything when ``field_names`` is empty.
    A new dict is returned; ``node`` itself is never mutated.
    """

    names = set(field_names or ())
    if not names or not isinstance(node, dict):
        return node

    return {key: (MASK if key in names else value) for key, value in node.items()}
