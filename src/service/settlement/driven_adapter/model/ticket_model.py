from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.db_setting import Base


class TicketModel(Base):
    __tablename__ = 'ticket'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    ticket_category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('ticket_category.id'), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    is_issued: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_listed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    resale_price: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    listed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resale_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    resale_commission: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    sold_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    bank_code: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
