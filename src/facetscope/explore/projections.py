"""Convert ORM rows into explore item models."""

from typing import TYPE_CHECKING, Any, Dict, List

from ..utils.time import as_aware_utc
from .models import EventItem, OrganizationItem, OrganizationSummary, ProfileItem, ProjectItem, TermRef

if TYPE_CHECKING:
    from ..database.schema import Event, Organization, Profile, Project
    from .entities import EntityConfig


def _visibility_flags(row: Any) -> Dict[str, bool]:
    # No visibility row: nothing but the id is public.
    if row.visibility is None:
        return {}
    return row.visibility.as_flags()


def _terms_by_field(row: Any, config: "EntityConfig") -> Dict[str, List[TermRef]]:
    """Group a row's terms into item fields, one per multi-valued dimension."""
    grouped: Dict[str, List[TermRef]] = {d.visibility_field: [] for d in config.multi_dimensions}
    field_by_vocabulary = {d.vocabulary: d.visibility_field for d in config.multi_dimensions}
    for term in row.terms:
        field = field_by_vocabulary.get(term.vocabulary)
        if field is not None:
            grouped[field].append(TermRef(slug=term.slug, title=term.title))
    return grouped


def organization_summary(row: "Organization") -> OrganizationSummary:
    return OrganizationSummary(
        id=row.id,
        slug=row.slug,
        name=row.name,
        logo=row.logo,
        visibility=_visibility_flags(row),
    )


def project_profile(row: "Profile", config: "EntityConfig") -> ProfileItem:
    return ProfileItem(
        id=row.id,
        username=row.username,
        first_name=row.first_name,
        last_name=row.last_name,
        academic_title=row.academic_title,
        position=row.position,
        avatar=row.avatar,
        background=row.background,
        member_of=[organization_summary(org) for org in row.member_of],
        visibility=_visibility_flags(row),
        **_terms_by_field(row, config),
    )


def project_organization(row: "Organization", config: "EntityConfig") -> OrganizationItem:
    return OrganizationItem(
        id=row.id,
        slug=row.slug,
        name=row.name,
        logo=row.logo,
        background=row.background,
        bio=row.bio,
        visibility=_visibility_flags(row),
        **_terms_by_field(row, config),
    )


def project_event(row: "Event", config: "EntityConfig") -> EventItem:
    return EventItem(
        id=row.id,
        slug=row.slug,
        name=row.name,
        subline=row.subline,
        description=row.description,
        start_time=as_aware_utc(row.start_time),
        end_time=as_aware_utc(row.end_time),
        participant_limit=row.participant_limit,
        background=row.background,
        canceled=row.canceled,
        responsible_organizations=[organization_summary(org) for org in row.responsible_organizations],
        visibility=_visibility_flags(row),
        **_terms_by_field(row, config),
    )


def project_project(row: "Project", config: "EntityConfig") -> ProjectItem:
    return ProjectItem(
        id=row.id,
        slug=row.slug,
        name=row.name,
        subline=row.subline,
        excerpt=row.excerpt,
        logo=row.logo,
        background=row.background,
        responsible_organizations=[organization_summary(org) for org in row.responsible_organizations],
        visibility=_visibility_flags(row),
        **_terms_by_field(row, config),
    )
