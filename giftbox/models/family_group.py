import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from giftbox.database import Base
from giftbox.types import TextArray


class FamilyGroup(Base):
    """``groups/{inviteCode}``: a parent's family and its child roster."""

    __tablename__ = "family_groups"

    invite_code: Mapped[str] = mapped_column(String(12), primary_key=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    children: Mapped[list[str]] = mapped_column(TextArray, nullable=False, default=list)
    settings: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<FamilyGroup(invite_code={self.invite_code!r}, owner_id={self.owner_id})>"
