"""SQLAlchemy ORM models: one file per table."""

from vulngate.models.artifact_property import ArtifactProperty

__all__ = ["ArtifactProperty"]
