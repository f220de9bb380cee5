import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from giftbox.database import Base


class ChildProfile(Base):
    """``children/{childId}``: created only by approving a link request."""

    __tablename__ = "children"

    child_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    family_code: Mapped[str] = mapped_column(
        String(12), ForeignKey("family_groups.invite_code"), nullable=False, index=True,
    )
    nickname: Mapped[str] = mapped_column(String(50), nullable=False)
    avatar: Mapped[str] = mapped_column(String(32), nullable=False, default="🐼")
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parent_uid: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    approval_settings: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<ChildProfile(child_id={self.child_id!r}, nickname={self.nickname!r})>"
