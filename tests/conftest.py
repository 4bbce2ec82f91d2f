"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from facetscope.database.facet_index_repo import rebuild_facet_index
from facetscope.database.schema import (
    Base,
    Event,
    EventVisibility,
    FacetTerm,
    Organization,
    OrganizationVisibility,
    Profile,
    ProfileVisibility,
    Project,
    ProjectVisibility,
)
from facetscope.explore.entities import ENTITY_CONFIGS

# A Monday.
NOW = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)

TERMS = [
    ("event_type", "online", "Online", None),
    ("event_type", "hybrid", "Hybrid", None),
    ("event_type", "onsite", "Vor Ort", None),
    ("focus", "coding", "Coding", None),
    ("focus", "education", "Education", None),
    ("event_target_group", "students", "Students", None),
    ("event_target_group", "teachers", "Teachers", None),
    ("organization_type", "ngo", "NGO", None),
    ("organization_type", "company", "Company", None),
    ("offer", "mentoring", "Mentoring", None),
    ("offer", "funding", "Funding", None),
    ("discipline", "stem", "STEM", None),
    ("discipline", "arts", "Arts", None),
    ("additional_discipline", "robotics", "Robotics", None),
    ("project_target_group", "kids", "Kids", None),
    ("format", "workshop", "Workshop", None),
    ("special_target_group", "girls", "Girls", None),
    ("financing", "grant", "Grant", None),
    ("area", "bundesweit", "Bundesweit", "global"),
    ("area", "deutschland", "Deutschland", "country"),
    ("area", "berlin", "Berlin", "state"),
    ("area", "bayern", "Bayern", "state"),
    ("area", "mitte", "Berlin-Mitte", "district"),
    ("area", "rabatt", "100% Rabatt", "district"),
]


def _naive(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


class CatalogBuilder:
    """Adds records with terms and visibility rows; ``hidden`` lists fields flagged false."""

    def __init__(self, session):
        self.session = session
        self.terms = {}
        for vocabulary, slug, title, area_type in TERMS:
            term = FacetTerm(vocabulary=vocabulary, slug=slug, title=title, area_type=area_type)
            session.add(term)
            self.terms[(vocabulary, slug)] = term
        session.flush()

    def _terms(self, tags):
        return [self.terms[tag] for tag in tags]

    def _visibility(self, model, key, record_id, hidden):
        row = model(**{key: record_id})
        for column in model.__table__.columns:
            if not column.primary_key:
                setattr(row, column.name, column.name not in hidden)
        self.session.add(row)

    def organization(self, id, name, tags=(), published=True, hidden=(), with_visibility=True):
        org = Organization(
            id=id,
            slug=id,
            name=name,
            logo=f"{id}.png",
            bio=f"About {name}",
            published=published,
            terms=self._terms(tags),
        )
        self.session.add(org)
        if with_visibility:
            self._visibility(OrganizationVisibility, "organization_id", id, hidden)
        self.session.flush()
        return org

    def profile(self, id, first_name, last_name, tags=(), member_of=(), published=True, hidden=(), with_visibility=True):
        profile = Profile(
            id=id,
            username=id,
            first_name=first_name,
            last_name=last_name,
            position="Volunteer",
            published=published,
            terms=self._terms(tags),
            member_of=list(member_of),
        )
        self.session.add(profile)
        if with_visibility:
            self._visibility(ProfileVisibility, "profile_id", id, hidden)
        self.session.flush()
        return profile

    def event(self, id, name, start, tags=(), organizations=(), published=True, hidden=(), with_visibility=True):
        event = Event(
            id=id,
            slug=id,
            name=name,
            subline=f"{name} subline",
            start_time=_naive(start),
            end_time=_naive(start.replace(hour=23)),
            published=published,
            terms=self._terms(tags),
            responsible_organizations=list(organizations),
        )
        self.session.add(event)
        if with_visibility:
            self._visibility(EventVisibility, "event_id", id, hidden)
        self.session.flush()
        return event

    def project(self, id, name, tags=(), organizations=(), published=True, hidden=(), with_visibility=True):
        project = Project(
            id=id,
            slug=id,
            name=name,
            excerpt=f"{name} excerpt",
            published=published,
            terms=self._terms(tags),
            responsible_organizations=list(organizations),
        )
        self.session.add(project)
        if with_visibility:
            self._visibility(ProjectVisibility, "project_id", id, hidden)
        self.session.flush()
        return project

    def index(self):
        for config in ENTITY_CONFIGS.values():
            rebuild_facet_index(self.session, config)
        self.session.commit()


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def session():
    """Create a temporary in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def builder(session):
    return CatalogBuilder(session)


@pytest.fixture
def make_builder():
    """CatalogBuilder class, for sessions not created by the session fixture."""
    return CatalogBuilder


@pytest.fixture
def catalog(builder):
    """Standard catalog: a week of events around NOW plus profiles, organizations and projects."""
    alpha = builder.organization("org-alpha", "Alpha e.V.", tags=[("organization_type", "ngo"), ("focus", "coding"), ("area", "berlin")])
    beta = builder.organization("org-beta", "Beta GmbH", tags=[("organization_type", "company"), ("area", "bayern")], hidden=("name", "logo"))
    builder.organization("org-gamma", "Gamma", tags=[("organization_type", "ngo")], published=False)
    builder.organization("org-delta", "Delta", tags=[("organization_type", "ngo")], hidden=("types",))

    builder.profile("p-anna", "Anna", "Schmidt", tags=[("offer", "mentoring"), ("area", "berlin")], member_of=[alpha, beta])
    builder.profile("p-ben", "Ben", "Arndt", tags=[("offer", "mentoring"), ("offer", "funding")], hidden=("offers", "last_name"))
    builder.profile("p-carla", "Carla", "Weber", tags=[("offer", "funding")], with_visibility=False)

    builder.event(
        "ev-hackathon", "Hackathon", utc(2024, 3, 5, 10),
        tags=[("event_type", "online"), ("event_type", "hybrid"), ("focus", "education"), ("area", "berlin")],
        organizations=[alpha, beta],
    )
    builder.event(
        "ev-coding", "Coding Night", utc(2024, 3, 6, 9),
        tags=[("event_type", "online"), ("focus", "coding"), ("event_target_group", "students")],
    )
    builder.event(
        "ev-secret", "Secret Meetup", utc(2024, 3, 7, 18),
        tags=[("event_type", "online"), ("focus", "coding")],
        hidden=("types",),
    )
    builder.event("ev-draft", "Draft", utc(2024, 3, 8, 12), tags=[("event_type", "online")], published=False)
    builder.event("ev-novis", "No Visibility", utc(2024, 3, 9, 12), tags=[("event_type", "online")], with_visibility=False)
    builder.event("ev-nextweek", "Next Week Workshop", utc(2024, 3, 11, 0), tags=[("event_type", "onsite")])
    builder.event("ev-past", "Past Talk", utc(2024, 3, 1, 12), tags=[("event_type", "onsite")])
    builder.event("ev-now", "Starting Now", NOW, tags=[("event_type", "hybrid")])
    builder.event("ev-april", "April Summit", utc(2024, 4, 10, 9), tags=[("event_type", "onsite"), ("area", "bayern")])

    builder.project(
        "pr-robots", "Robots",
        tags=[("discipline", "stem"), ("additional_discipline", "robotics"), ("format", "workshop"), ("special_target_group", "girls"), ("area", "berlin")],
        organizations=[alpha],
    )
    builder.project(
        "pr-paint", "Paint",
        tags=[("discipline", "arts"), ("financing", "grant"), ("special_target_group", "girls")],
        hidden=("disciplines", "special_target_groups"),
    )
    builder.project("pr-draft", "Draft Project", tags=[("discipline", "stem")], published=False)

    builder.index()
    return builder
