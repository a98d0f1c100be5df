"""UUID helpers: id generation, short display ids and prefix resolution."""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from twotab_todo.exceptions import ValidationFailure


def new_id() -> str:
    """Generate a fresh opaque identifier."""
    return str(uuid.uuid4())


def shorten_uuid(value: str, length: int = 8) -> str:
    """Get shortened version of an id for display.

    Args:
        value: Full id string
        length: Number of characters to return (default 8)

    Returns:
        First N characters of the id
    """
    return value[:length]


def resolve_id(reference: str, ids: Iterable[str], kind: str = "task") -> str:
    """Resolve a full id or unique prefix to a full id.

    Args:
        reference: Full id or prefix as typed by the user
        ids: Candidate ids
        kind: Noun used in error messages

    Returns:
        The matching full id

    Raises:
        ValidationFailure: If nothing matches or the prefix is ambiguous
    """
    reference = reference.strip().lower()
    if not reference:
        raise ValidationFailure(f"Empty {kind} id")

    candidates = list(ids)
    for candidate in candidates:
        if candidate.lower() == reference:
            return candidate

    matches = [c for c in candidates if c.lower().startswith(reference)]
    if not matches:
        raise ValidationFailure(f"{kind.capitalize()} not found: {reference}")
    if len(matches) > 1:
        shown = ", ".join(shorten_uuid(m) for m in matches[:5])
        if len(matches) > 5:
            shown += f", ... ({len(matches)} total)"
        raise ValidationFailure(
            f"Ambiguous id '{reference}' matches {len(matches)} {kind}s: {shown}"
        )
    return matches[0]
