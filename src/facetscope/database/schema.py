from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class FacetTerm(Base):
    """One slug of a facet vocabulary (event types, focuses, areas, ...)."""
    __tablename__ = "facet_terms"

    term_id = Column(Integer, primary_key=True, autoincrement=True)
    vocabulary = Column(String, nullable=False, index=True)  # e.g. event_type, focus, area
    slug = Column(String, nullable=False)
    title = Column(String, nullable=False)
    area_type = Column(String, nullable=True)  # global | country | state | district (area vocabulary only)

    __table_args__ = (
        UniqueConstraint("vocabulary", "slug", name="uq_facet_terms_vocabulary_slug"),
    )


class FacetIndexEntry(Base):
    """Precomputed per-record facet token (dimension:slug), rebuilt by facet_index_repo."""
    __tablename__ = "facet_index"

    entity_type = Column(String, primary_key=True)  # events | profiles | organizations | projects
    entity_id = Column(String, primary_key=True)
    dimension = Column(String, primary_key=True)
    slug = Column(String, primary_key=True)

    __table_args__ = (
        Index("idx_facet_index_lookup", "entity_type", "dimension", "slug"),
        Index("idx_facet_index_entity", "entity_type", "entity_id"),
    )


class VisibilityMixin:
    """Boolean columns named after the item fields they guard."""

    def as_flags(self) -> dict[str, bool]:
        primary = {column.name for column in self.__table__.primary_key.columns}
        return {
            column.name: bool(getattr(self, column.name))
            for column in self.__table__.columns
            if column.name not in primary
        }


profile_terms = Table(
    "profile_terms",
    Base.metadata,
    Column("profile_id", String, ForeignKey("profiles.id"), primary_key=True),
    Column("term_id", Integer, ForeignKey("facet_terms.term_id"), primary_key=True),
)

organization_terms = Table(
    "organization_terms",
    Base.metadata,
    Column("organization_id", String, ForeignKey("organizations.id"), primary_key=True),
    Column("term_id", Integer, ForeignKey("facet_terms.term_id"), primary_key=True),
)

event_terms = Table(
    "event_terms",
    Base.metadata,
    Column("event_id", String, ForeignKey("events.id"), primary_key=True),
    Column("term_id", Integer, ForeignKey("facet_terms.term_id"), primary_key=True),
)

project_terms = Table(
    "project_terms",
    Base.metadata,
    Column("project_id", String, ForeignKey("projects.id"), primary_key=True),
    Column("term_id", Integer, ForeignKey("facet_terms.term_id"), primary_key=True),
)

profile_memberships = Table(
    "profile_memberships",
    Base.metadata,
    Column("profile_id", String, ForeignKey("profiles.id"), primary_key=True),
    Column("organization_id", String, ForeignKey("organizations.id"), primary_key=True),
)

event_organizations = Table(
    "event_organizations",
    Base.metadata,
    Column("event_id", String, ForeignKey("events.id"), primary_key=True),
    Column("organization_id", String, ForeignKey("organizations.id"), primary_key=True),
)

project_organizations = Table(
    "project_organizations",
    Base.metadata,
    Column("project_id", String, ForeignKey("projects.id"), primary_key=True),
    Column("organization_id", String, ForeignKey("organizations.id"), primary_key=True),
)


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String, primary_key=True)
    slug = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    logo = Column(String, nullable=True)  # storage object key, rewritten by the enhancer
    background = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    terms = relationship(FacetTerm, secondary=organization_terms, order_by=FacetTerm.slug)
    visibility = relationship("OrganizationVisibility", uselist=False, back_populates="organization")


class OrganizationVisibility(VisibilityMixin, Base):
    __tablename__ = "organization_visibility"

    organization_id = Column(String, ForeignKey("organizations.id"), primary_key=True)
    slug = Column(Boolean, nullable=False, default=True)
    name = Column(Boolean, nullable=False, default=True)
    logo = Column(Boolean, nullable=False, default=True)
    background = Column(Boolean, nullable=False, default=True)
    bio = Column(Boolean, nullable=False, default=True)
    types = Column(Boolean, nullable=False, default=True)
    focuses = Column(Boolean, nullable=False, default=True)
    areas = Column(Boolean, nullable=False, default=True)

    organization = relationship(Organization, back_populates="visibility")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    username = Column(String, nullable=False, unique=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    academic_title = Column(String, nullable=True)
    position = Column(String, nullable=True)
    avatar = Column(String, nullable=True)
    background = Column(String, nullable=True)
    published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    terms = relationship(FacetTerm, secondary=profile_terms, order_by=FacetTerm.slug)
    member_of = relationship(Organization, secondary=profile_memberships, order_by=Organization.name)
    visibility = relationship("ProfileVisibility", uselist=False, back_populates="profile")


class ProfileVisibility(VisibilityMixin, Base):
    __tablename__ = "profile_visibility"

    profile_id = Column(String, ForeignKey("profiles.id"), primary_key=True)
    username = Column(Boolean, nullable=False, default=True)
    first_name = Column(Boolean, nullable=False, default=True)
    last_name = Column(Boolean, nullable=False, default=True)
    academic_title = Column(Boolean, nullable=False, default=True)
    position = Column(Boolean, nullable=False, default=True)
    avatar = Column(Boolean, nullable=False, default=True)
    background = Column(Boolean, nullable=False, default=True)
    offers = Column(Boolean, nullable=False, default=True)
    areas = Column(Boolean, nullable=False, default=True)
    member_of = Column(Boolean, nullable=False, default=True)

    profile = relationship(Profile, back_populates="visibility")


class Event(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True)
    slug = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    subline = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)  # naive UTC
    end_time = Column(DateTime, nullable=False)  # naive UTC
    participant_limit = Column(Integer, nullable=True)
    background = Column(String, nullable=True)
    canceled = Column(Boolean, nullable=False, default=False)
    published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    terms = relationship(FacetTerm, secondary=event_terms, order_by=FacetTerm.slug)
    responsible_organizations = relationship(
        Organization, secondary=event_organizations, order_by=Organization.name
    )
    visibility = relationship("EventVisibility", uselist=False, back_populates="event")


class EventVisibility(VisibilityMixin, Base):
    __tablename__ = "event_visibility"

    event_id = Column(String, ForeignKey("events.id"), primary_key=True)
    slug = Column(Boolean, nullable=False, default=True)
    name = Column(Boolean, nullable=False, default=True)
    subline = Column(Boolean, nullable=False, default=True)
    description = Column(Boolean, nullable=False, default=True)
    start_time = Column(Boolean, nullable=False, default=True)
    end_time = Column(Boolean, nullable=False, default=True)
    participant_limit = Column(Boolean, nullable=False, default=True)
    background = Column(Boolean, nullable=False, default=True)
    canceled = Column(Boolean, nullable=False, default=True)
    types = Column(Boolean, nullable=False, default=True)
    focuses = Column(Boolean, nullable=False, default=True)
    target_groups = Column(Boolean, nullable=False, default=True)
    areas = Column(Boolean, nullable=False, default=True)
    responsible_organizations = Column(Boolean, nullable=False, default=True)

    event = relationship(Event, back_populates="visibility")


class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    slug = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    subline = Column(String, nullable=True)
    excerpt = Column(Text, nullable=True)
    logo = Column(String, nullable=True)
    background = Column(String, nullable=True)
    published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    terms = relationship(FacetTerm, secondary=project_terms, order_by=FacetTerm.slug)
    responsible_organizations = relationship(
        Organization, secondary=project_organizations, order_by=Organization.name
    )
    visibility = relationship("ProjectVisibility", uselist=False, back_populates="project")


class ProjectVisibility(VisibilityMixin, Base):
    __tablename__ = "project_visibility"

    project_id = Column(String, ForeignKey("projects.id"), primary_key=True)
    slug = Column(Boolean, nullable=False, default=True)
    name = Column(Boolean, nullable=False, default=True)
    subline = Column(Boolean, nullable=False, default=True)
    excerpt = Column(Boolean, nullable=False, default=True)
    logo = Column(Boolean, nullable=False, default=True)
    background = Column(Boolean, nullable=False, default=True)
    disciplines = Column(Boolean, nullable=False, default=True)
    additional_disciplines = Column(Boolean, nullable=False, default=True)
    target_groups = Column(Boolean, nullable=False, default=True)
    formats = Column(Boolean, nullable=False, default=True)
    special_target_groups = Column(Boolean, nullable=False, default=True)
    financings = Column(Boolean, nullable=False, default=True)
    areas = Column(Boolean, nullable=False, default=True)
    responsible_organizations = Column(Boolean, nullable=False, default=True)

    project = relationship(Project, back_populates="visibility")


def create_all(engine: Engine) -> None:
    Base.metadata.create_all(engine)
