"""Exceptions raised by the explore pipeline.

Each carries the HTTP status a transport layer should answer with.
"""


class ExploreError(Exception):
    status_code = 500


class InvalidFilterValue(ExploreError):
    """A filter value is empty or not in its dimension's vocabulary."""
    status_code = 400

    def __init__(self, dimension: str, value: str, reason: str = "unknown value") -> None:
        self.dimension = dimension
        self.value = value
        super().__init__(f"Invalid value {value!r} for filter[{dimension}]: {reason}")


class InvalidSortOrPage(ExploreError):
    status_code = 400

    def __init__(self, param: str, value: str) -> None:
        self.param = param
        self.value = value
        super().__init__(f"Invalid {param}: {value!r}")


class StoreUnavailable(ExploreError):
    """The backing store failed; wraps the driver error as __cause__."""
    status_code = 500


class VocabularyLookupFailed(StoreUnavailable):
    pass


class UnknownEntityType(ExploreError):
    status_code = 404

    def __init__(self, entity_type: str) -> None:
        self.entity_type = entity_type
        super().__init__(f"Unknown entity type: {entity_type!r}")
