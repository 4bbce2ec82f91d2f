"""API layer: canonical read surface for explore listings.

Key rules:

1. No SQLAlchemy imports - only call repo functions
2. Validation happens before any count or page query
3. Return Pydantic models only
"""
