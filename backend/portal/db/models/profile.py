"""Module: profile."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base import Base

MEMBER_STATUSES = ("pending", "active", "dormant", "suspended")


class Profile(Base):
    __tablename__ = "profiles"

    # Same value as the auth provider's user id.
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    membership_number: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    id_number: Mapped[str | None] = mapped_column(String, nullable=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    occupation: Mapped[str | None] = mapped_column(String, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String, nullable=True)

    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    registration_fee_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    soft_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Weak reference to the acting admin; deliberately not a foreign key.
    deleted_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=lambda: datetime.now(UTC),
        nullable=True,
    )

    def snapshot(self) -> dict:
        """Plain-JSON copy of the row, returned to callers as a deletion receipt."""
        return {
            "id": str(self.id),
            "membership_number": self.membership_number,
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "id_number": self.id_number,
            "status": self.status,
            "registration_fee_paid": self.registration_fee_paid,
            "soft_deleted": self.soft_deleted,
        }
