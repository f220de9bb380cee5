import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from giftbox.database import Base

LINK_REQUEST_STATUSES = ("pending", "approved", "rejected")


class ChildLinkRequest(Base):
    """``child_link_requests/{requestId}``: a child asking to join a family.

    Resolved exactly once: ``pending`` -> ``approved`` | ``rejected``.
    """

    __tablename__ = "child_link_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    family_code: Mapped[str] = mapped_column(
        String(12), ForeignKey("family_groups.invite_code"), nullable=False, index=True,
    )
    child_nickname: Mapped[str] = mapped_column(String(50), nullable=False)
    child_avatar: Mapped[str] = mapped_column(String(32), nullable=False)
    child_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_uid: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    child_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    parent_approval: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<ChildLinkRequest(id={self.id!r}, status={self.status!r})>"
