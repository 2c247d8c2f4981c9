from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.db_setting import Base


class TransactionTicketModel(Base):
    __tablename__ = 'transaction_ticket'

    transaction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('transaction.id', ondelete='CASCADE'), primary_key=True, index=True
    )
    ticket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('ticket.id'), primary_key=True, index=True
    )
