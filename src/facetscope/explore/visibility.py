"""Field-level redaction for anonymous viewers."""

from typing import Any, Dict, TypeVar

from .models import ExploreItem

ALWAYS_VISIBLE = frozenset({"id", "visibility"})

ItemT = TypeVar("ItemT", bound=ExploreItem)


def apply_visibility(item: ItemT, viewer_is_authenticated: bool) -> ItemT:
    """
    Redact the fields an anonymous viewer may not see.

    Authenticated viewers get the item unchanged. For anonymous viewers every
    field whose visibility flag is not true is nulled (scalars become None,
    lists become []), keeping the key. Embedded sub-records are redacted with
    their own flags. The id is never redacted.

    Args:
        item: Projected explore item
        viewer_is_authenticated: Whether the viewer is logged in

    Returns:
        The same item or a redacted copy
    """
    if viewer_is_authenticated:
        return item
    return _redact(item)


def _redact(item: ItemT) -> ItemT:
    updates: Dict[str, Any] = {}
    for name in type(item).model_fields:
        if name in ALWAYS_VISIBLE:
            continue
        value = getattr(item, name)
        if not item.visibility.get(name, False):
            updates[name] = [] if isinstance(value, list) else None
        elif isinstance(value, list) and any(isinstance(entry, ExploreItem) for entry in value):
            updates[name] = [_redact(entry) if isinstance(entry, ExploreItem) else entry for entry in value]
    return item.model_copy(update=updates)
