"""Viewer identity and the result-enhancer extension point."""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .models import ExploreItem


@dataclass(frozen=True)
class Viewer:
    """Resolved by the caller's session layer; no profile id means anonymous."""
    profile_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.profile_id is not None


ANONYMOUS = Viewer()


class ResultEnhancer(Protocol):
    """Post-processes redacted items (image URLs, viewer-relative flags)."""

    def enhance(self, items: Sequence[ExploreItem], viewer: Viewer) -> List[ExploreItem]:
        ...


class PassthroughEnhancer:
    def enhance(self, items: Sequence[ExploreItem], viewer: Viewer) -> List[ExploreItem]:
        return list(items)
