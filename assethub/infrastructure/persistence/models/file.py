"""File ORM model. Upload metadata for one stored object."""

from sqlalchemy import BigInteger, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from assethub.domain.enums import FileStatus
from assethub.infrastructure.persistence.database import Base
from assethub.infrastructure.persistence.models.mixins import AuditedModel

_STATUS_VALUES = ", ".join(f"'{v}'" for v in FileStatus.values())


class File(AuditedModel, Base):
    """File entity. Table: file. storage_key is minted once and never changes."""

    __tablename__ = "file"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    content_type: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=FileStatus.PENDING.value, index=True
    )
    # Not populated: no content hashing or de-duplication.
    hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    upload_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_file_status"),
        CheckConstraint("size >= 0", name="ck_file_size_non_negative"),
        Index("ix_file_status_created_at", "status", "created_at"),
    )
