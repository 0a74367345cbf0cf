"""Daily pickup numbers.

The counter row is advanced with one ``UPDATE ... RETURNING`` statement that
also performs the day rollover, so two writers can never read the same value
and the number is only consumed if the surrounding transaction commits.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from sqlalchemy import Engine, case, insert, update
from sqlalchemy.orm import Session

from oap.application.ports.repositories import PickupSequencer
from oap.infrastructure.clock import cafe_today
from oap.infrastructure.db.models.pickup_counter import PICKUP_COUNTER_ROW_ID, PickupCounterModel
from oap.infrastructure.db.repositories.errors import translate_errors
from oap.infrastructure.db.session import get_engine

_counter = PickupCounterModel.__table__


class SqlAlchemyPickupSequencer(PickupSequencer):
    def __init__(
        self,
        engine: Engine | None = None,
        today_provider: Callable[[], date] = cafe_today,
    ) -> None:
        self._engine = engine or get_engine()
        self._today_provider = today_provider

    def allocate(self, session: Session) -> int:
        """Take the next number inside the caller's transaction."""
        today = self._today_provider()
        statement = (
            update(_counter)
            .where(_counter.c.id == PICKUP_COUNTER_ROW_ID)
            .values(
                current_number=case(
                    (_counter.c.last_reset_date == today, _counter.c.current_number + 1),
                    else_=1,
                ),
                last_reset_date=today,
            )
            .returning(_counter.c.current_number)
        )
        number = session.execute(statement).scalar_one_or_none()
        if number is None:
            session.execute(
                insert(_counter).values(
                    id=PICKUP_COUNTER_ROW_ID,
                    current_number=1,
                    last_reset_date=today,
                )
            )
            number = 1
        return number

    def next_pickup_number(self) -> int:
        with translate_errors("next_pickup_number"), Session(self._engine) as session:
            with session.begin():
                return self.allocate(session)
