from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Integer
from sqlalchemy.orm import Mapped, mapped_column

from oap.infrastructure.db.models.base import Base

PICKUP_COUNTER_ROW_ID = 1


class PickupCounterModel(Base):
    """Single-row counter; ``last_reset_date`` is the café day of ``current_number``."""

    __tablename__ = "pickup_counter"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    current_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_reset_date: Mapped[date] = mapped_column(Date, nullable=False)
