from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.db_setting import Base


class EventModel(Base):
    """Owned by the event catalog; this service only reads it"""

    __tablename__ = 'event'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organizer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    primary_fee_bps: Mapped[int] = mapped_column(Integer, default=500, nullable=False)
    resale_fee_bps: Mapped[int] = mapped_column(Integer, default=500, nullable=False)
    royalty_fee_bps: Mapped[int] = mapped_column(Integer, default=500, nullable=False)
