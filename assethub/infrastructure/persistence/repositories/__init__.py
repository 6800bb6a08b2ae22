"""Repositories: SQLAlchemy implementations of application repository ports."""

from assethub.infrastructure.persistence.repositories.file_repo import FileRepository

__all__ = ["FileRepository"]
