"""Pydantic models for explore items and responses.

Item models carry their record's visibility flags in ``visibility``. The
flags drive redaction for anonymous viewers and are never serialized.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class VocabularyTerm(BaseModel):
    """One entry of a facet vocabulary as read from storage."""
    slug: str
    title: str
    area_type: Optional[str] = None  # area vocabulary only


class TermRef(BaseModel):
    slug: str
    title: str


class ExploreItem(BaseModel):
    id: str
    visibility: Dict[str, bool] = Field(default_factory=dict, exclude=True)


class OrganizationSummary(ExploreItem):
    """Embedded organization (responsible organizations, memberships)."""
    slug: Optional[str] = None
    name: Optional[str] = None
    logo: Optional[str] = None


class ProfileItem(ExploreItem):
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    academic_title: Optional[str] = None
    position: Optional[str] = None
    avatar: Optional[str] = None
    background: Optional[str] = None
    offers: List[TermRef] = []
    areas: List[TermRef] = []
    member_of: List[OrganizationSummary] = []


class OrganizationItem(ExploreItem):
    slug: Optional[str] = None
    name: Optional[str] = None
    logo: Optional[str] = None
    background: Optional[str] = None
    bio: Optional[str] = None
    types: List[TermRef] = []
    focuses: List[TermRef] = []
    areas: List[TermRef] = []


class EventItem(ExploreItem):
    slug: Optional[str] = None
    name: Optional[str] = None
    subline: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None  # aware UTC
    end_time: Optional[datetime] = None  # aware UTC
    participant_limit: Optional[int] = None
    background: Optional[str] = None
    canceled: Optional[bool] = None
    types: List[TermRef] = []
    focuses: List[TermRef] = []
    target_groups: List[TermRef] = []
    areas: List[TermRef] = []
    responsible_organizations: List[OrganizationSummary] = []


class ProjectItem(ExploreItem):
    slug: Optional[str] = None
    name: Optional[str] = None
    subline: Optional[str] = None
    excerpt: Optional[str] = None
    logo: Optional[str] = None
    background: Optional[str] = None
    disciplines: List[TermRef] = []
    additional_disciplines: List[TermRef] = []
    target_groups: List[TermRef] = []
    formats: List[TermRef] = []
    special_target_groups: List[TermRef] = []
    financings: List[TermRef] = []
    areas: List[TermRef] = []
    responsible_organizations: List[OrganizationSummary] = []


class FacetOption(BaseModel):
    slug: str
    title: str
    count: int
    is_checked: bool


class SelectedFacet(BaseModel):
    slug: str
    title: str
    count: int


class AreaOption(BaseModel):
    slug: str
    title: str
    area_type: Optional[str] = None
    count: int
    is_checked: bool


class SelectedArea(BaseModel):
    slug: str
    title: str
    count: int
    is_in_search_results: bool


class ResultPage(BaseModel):
    items: List[Union[EventItem, ProfileItem, OrganizationItem, ProjectItem]]
    page_number: int
    items_per_page: int
    total_matching_count: int


class ExploreResponse(BaseModel):
    """Everything an explore listing renders for one request."""
    entity_type: str
    is_logged_in: bool
    result: ResultPage
    hidden_by_visibility_count: int = 0  # matches an anonymous viewer would see after logging in
    facets: Dict[str, List[FacetOption]] = {}
    selected: Dict[str, List[SelectedFacet]] = {}
    areas: Dict[str, List[AreaOption]] = {}  # grouped by area_type
    selected_areas: List[SelectedArea] = []
    period_of_time: Optional[str] = None  # events only
    sort_by: str
    search: Optional[str] = None
