"""ORM models. Import here so Alembic autogenerate sees every table."""

from assethub.infrastructure.persistence.models.file import File

__all__ = ["File"]
