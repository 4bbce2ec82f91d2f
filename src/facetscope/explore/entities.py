"""Per-entity-type explore configuration.

One EntityConfig describes everything the generic pipeline needs to list an
entity type: its facet dimensions, the vocabulary and visibility field behind
each dimension, sortable fields, default sort, page size and the projection
from an ORM row to a response item.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..config.loader import DEFAULT_ITEMS_PER_PAGE
from ..database.schema import (
    Event,
    EventVisibility,
    Organization,
    OrganizationVisibility,
    Profile,
    ProfileVisibility,
    Project,
    ProjectVisibility,
)
from .errors import UnknownEntityType
from .projections import project_event, project_organization, project_profile, project_project

AREA_DIMENSION = "area"
SORT_DIRECTIONS = ("asc", "desc")


class DimensionKind(str, Enum):
    MULTI = "multi"
    RANGE = "range"


@dataclass(frozen=True)
class Dimension:
    """A filterable attribute, keyed by its query-string name.

    MULTI dimensions draw slugs from ``vocabulary``; RANGE dimensions filter
    ``column`` by a time window. ``visibility_field`` names the visibility
    flag (and item field) that guards the dimension for anonymous viewers.
    """
    key: str
    kind: DimensionKind
    visibility_field: str
    vocabulary: Optional[str] = None
    column: Optional[str] = None


def multi(key: str, vocabulary: str, visibility_field: str) -> Dimension:
    return Dimension(key=key, kind=DimensionKind.MULTI, visibility_field=visibility_field, vocabulary=vocabulary)


def time_range(key: str, column: str) -> Dimension:
    return Dimension(key=key, kind=DimensionKind.RANGE, visibility_field=column, column=column)


@dataclass(frozen=True)
class EntityConfig:
    entity_type: str
    model: Any
    visibility_model: Any
    dimensions: Tuple[Dimension, ...]
    sort_fields: Mapping[str, str]  # query-string field -> model column
    default_sort: str
    projection: Callable[[Any, "EntityConfig"], Any]
    related: Tuple[Any, ...] = ()  # relationships to organizations, eager loaded with their visibility
    items_per_page: int = DEFAULT_ITEMS_PER_PAGE

    def __post_init__(self) -> None:
        columns = set(self.model.__table__.c.keys())
        flags = set(self.visibility_model.__table__.c.keys())
        keys = [dimension.key for dimension in self.dimensions]
        if len(keys) != len(set(keys)):
            raise ValueError(f"{self.entity_type}: duplicate dimension keys {keys}")
        ranges = [d for d in self.dimensions if d.kind is DimensionKind.RANGE]
        if len(ranges) > 1:
            raise ValueError(f"{self.entity_type}: at most one range dimension is supported")
        for dimension in self.dimensions:
            if dimension.visibility_field not in flags:
                raise ValueError(
                    f"{self.entity_type}: no visibility flag {dimension.visibility_field!r} "
                    f"for dimension {dimension.key!r}"
                )
            if dimension.kind is DimensionKind.MULTI and not dimension.vocabulary:
                raise ValueError(f"{self.entity_type}: dimension {dimension.key!r} needs a vocabulary")
            if dimension.kind is DimensionKind.RANGE and dimension.column not in columns:
                raise ValueError(f"{self.entity_type}: unknown range column {dimension.column!r}")
        for field, column in self.sort_fields.items():
            if column not in columns:
                raise ValueError(f"{self.entity_type}: sort field {field!r} maps to unknown column {column!r}")
        field, _, direction = self.default_sort.partition("-")
        if field not in self.sort_fields or direction not in SORT_DIRECTIONS:
            raise ValueError(f"{self.entity_type}: invalid default sort {self.default_sort!r}")
        if self.items_per_page < 1:
            raise ValueError(f"{self.entity_type}: items_per_page must be positive")

    @property
    def multi_dimensions(self) -> Tuple[Dimension, ...]:
        return tuple(d for d in self.dimensions if d.kind is DimensionKind.MULTI)

    @property
    def range_dimension(self) -> Optional[Dimension]:
        for dimension in self.dimensions:
            if dimension.kind is DimensionKind.RANGE:
                return dimension
        return None

    def dimension(self, key: str) -> Optional[Dimension]:
        for dimension in self.dimensions:
            if dimension.key == key:
                return dimension
        return None

    def project(self, row: Any) -> Any:
        return self.projection(row, self)


EVENTS = EntityConfig(
    entity_type="events",
    model=Event,
    visibility_model=EventVisibility,
    dimensions=(
        multi("type", "event_type", "types"),
        multi("focus", "focus", "focuses"),
        multi("targetGroup", "event_target_group", "target_groups"),
        multi(AREA_DIMENSION, "area", "areas"),
        time_range("periodOfTime", "start_time"),
    ),
    sort_fields={"startTime": "start_time", "name": "name"},
    default_sort="startTime-asc",
    projection=project_event,
    related=(Event.responsible_organizations,),
)

PROFILES = EntityConfig(
    entity_type="profiles",
    model=Profile,
    visibility_model=ProfileVisibility,
    dimensions=(
        multi("offer", "offer", "offers"),
        multi(AREA_DIMENSION, "area", "areas"),
    ),
    sort_fields={"firstName": "first_name", "lastName": "last_name", "createdAt": "created_at"},
    default_sort="firstName-asc",
    projection=project_profile,
    related=(Profile.member_of,),
)

ORGANIZATIONS = EntityConfig(
    entity_type="organizations",
    model=Organization,
    visibility_model=OrganizationVisibility,
    dimensions=(
        multi("type", "organization_type", "types"),
        multi("focus", "focus", "focuses"),
        multi(AREA_DIMENSION, "area", "areas"),
    ),
    sort_fields={"name": "name", "createdAt": "created_at"},
    default_sort="name-asc",
    projection=project_organization,
)

PROJECTS = EntityConfig(
    entity_type="projects",
    model=Project,
    visibility_model=ProjectVisibility,
    dimensions=(
        multi("discipline", "discipline", "disciplines"),
        multi("additionalDiscipline", "additional_discipline", "additional_disciplines"),
        multi("targetGroup", "project_target_group", "target_groups"),
        multi(AREA_DIMENSION, "area", "areas"),
        multi("format", "format", "formats"),
        multi("specialTargetGroup", "special_target_group", "special_target_groups"),
        multi("financing", "financing", "financings"),
    ),
    sort_fields={"name": "name", "createdAt": "created_at"},
    default_sort="name-asc",
    projection=project_project,
    related=(Project.responsible_organizations,),
)

ENTITY_CONFIGS: Dict[str, EntityConfig] = {
    config.entity_type: config for config in (EVENTS, PROFILES, ORGANIZATIONS, PROJECTS)
}


def get_entity_config(
    entity_type: str,
    settings: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> EntityConfig:
    """
    Look up the configuration for an entity type.

    Args:
        entity_type: One of events, profiles, organizations, projects
        settings: Optional per-entity overrides as returned by
            config.loader.get_explore_settings (items_per_page, default_sort)

    Returns:
        EntityConfig, with overrides applied

    Raises:
        UnknownEntityType: If the entity type is not registered
        ValueError: If an override is invalid for the entity type
    """
    config = ENTITY_CONFIGS.get(entity_type)
    if config is None:
        raise UnknownEntityType(entity_type)
    overrides = dict((settings or {}).get(entity_type) or {})
    changes: Dict[str, Any] = {}
    if "items_per_page" in overrides:
        changes["items_per_page"] = overrides["items_per_page"]
    if overrides.get("default_sort"):
        default_sort = overrides["default_sort"]
        if "-" not in default_sort:
            default_sort = f"{default_sort}-asc"
        changes["default_sort"] = default_sort
    if not changes:
        return config
    return replace(config, **changes)
