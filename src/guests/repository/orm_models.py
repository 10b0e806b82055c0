from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.config.table_names import TableNames
from src.models.base import Base, TimeStamp


class Guest(Base, TimeStamp):
    __tablename__ = TableNames.GUESTS.value

    first_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Token embedded in the personal RSVP link
    token: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    has_used_token: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_accessed: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    # Plus one
    plus_one_eligible: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    plus_one_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plus_one_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    invitation_group: Mapped[str] = mapped_column(
        String(100), default="other", nullable=False, index=True
    )
    dietary_restrictions: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    special_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Guest {self.first_name} {self.last_name} - {self.token}>"
