"""facetscope: visibility-aware faceted search for explore listings."""

__version__ = "0.4.0"
