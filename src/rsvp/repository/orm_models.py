from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.config.table_names import TableNames
from src.guests.repository.orm_models import Guest
from src.models.base import Base, TimeStamp


class RSVP(Base, TimeStamp):
    __tablename__ = TableNames.RSVPS.value

    # Loosely coupled: the token is kept even when no guest row exists
    guest_token: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    guest_id: Mapped[UUID | None] = mapped_column(
        ForeignKey(f"{TableNames.GUESTS.value}.uuid", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    whatsapp_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    attending: Mapped[bool] = mapped_column(Boolean, nullable=False)
    meal_choice: Mapped[str | None] = mapped_column(String(100), nullable=True)
    dietary_restrictions: Mapped[str | None] = mapped_column(Text, nullable=True)

    plus_one_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plus_one_meal_choice: Mapped[str | None] = mapped_column(String(100), nullable=True)
    plus_one_dietary_restrictions: Mapped[str | None] = mapped_column(Text, nullable=True)

    wants_email_confirmation: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    wants_whatsapp_confirmation: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)

    submission_id: Mapped[str] = mapped_column(String(100), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    email_confirmation_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    whatsapp_confirmation_sent: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    guest: Mapped[Guest | None] = relationship(lazy="noload")

    def __repr__(self) -> str:
        return f"<RSVP {self.guest_name} - {self.guest_token} attending={self.attending}>"
