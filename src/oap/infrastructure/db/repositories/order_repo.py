from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Engine, case, func, select, update
from sqlalchemy.orm import Session, selectinload

from oap.application.ports.repositories import (
    OptimisticConcurrencyError,
    OrderRepository,
    OrderStatsData,
)
from oap.domain.common.ids import MenuItemId, OrderId, OrderItemId
from oap.domain.common.money import Money
from oap.domain.order.entities import (
    ACTIVE_STATUSES,
    Order,
    OrderItem,
    OrderItemModifier,
    OrderStatus,
)
from oap.infrastructure.db.models.order import OrderItemModel, OrderItemModifierModel, OrderModel
from oap.infrastructure.db.repositories.errors import translate_errors
from oap.infrastructure.db.repositories.pickup_sequencer import SqlAlchemyPickupSequencer
from oap.infrastructure.db.session import get_engine

_STATUS_RANK = {status.value: rank for rank, status in enumerate(ACTIVE_STATUSES)}


def _with_items(statement):
    return statement.options(
        selectinload(OrderModel.items).selectinload(OrderItemModel.modifiers)
    )


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(
        self,
        engine: Engine | None = None,
        sequencer: SqlAlchemyPickupSequencer | None = None,
    ) -> None:
        self._engine = engine or get_engine()
        self._sequencer = sequencer or SqlAlchemyPickupSequencer(self._engine)

    def add(self, order: Order) -> Order:
        """Number and store the order, its items and modifiers in one transaction."""
        with translate_errors("add_order"), Session(self._engine) as session:
            with session.begin():
                numbered = replace(order, pickup_number=self._sequencer.allocate(session))
                session.add(self._to_model(numbered))
        return numbered

    def get(self, order_id: OrderId) -> Order | None:
        statement = _with_items(select(OrderModel)).where(OrderModel.id == str(order_id))
        with translate_errors("get_order"), Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return self._to_domain(model)

    def list_active(self) -> list[Order]:
        statement = (
            _with_items(select(OrderModel))
            .where(OrderModel.status.in_(list(_STATUS_RANK)))
            .order_by(
                case(_STATUS_RANK, value=OrderModel.status),
                OrderModel.created_at.asc(),
                OrderModel.pickup_number.asc(),
            )
        )
        with translate_errors("list_active_orders"), Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [self._to_domain(model) for model in models]

    def update_status_with_version(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        expected_version: int,
        updated_at: datetime,
    ) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.version == expected_version,
            )
            .values(
                status=new_status.value,
                version=OrderModel.version + 1,
                updated_at=updated_at,
            )
        )
        reload = _with_items(select(OrderModel)).where(OrderModel.id == str(order_id))
        with translate_errors("update_order_status"), Session(self._engine) as session:
            with session.begin():
                result = session.execute(statement)
                if result.rowcount != 1:
                    raise OptimisticConcurrencyError(f"order {order_id} version conflict")
                # Same transaction: the result is this transition, a failed read rolls it back.
                model = session.execute(reload).scalar_one()
                updated = self._to_domain(model)
        return updated

    def summarize_between(self, start: datetime, end: datetime) -> OrderStatsData:
        revenue = func.coalesce(
            func.sum(
                case(
                    (OrderModel.status != OrderStatus.CANCELLED.value, OrderModel.total_cents),
                    else_=0,
                )
            ),
            0,
        )
        statement = select(func.count(OrderModel.id), revenue).where(
            OrderModel.created_at >= start,
            OrderModel.created_at < end,
        )
        with translate_errors("summarize_orders"), Session(self._engine) as session:
            orders_total, revenue_cents = session.execute(statement).one()
        return OrderStatsData(orders_total=int(orders_total), revenue_cents=int(revenue_cents))

    def _to_model(self, order: Order) -> OrderModel:
        order_model = OrderModel(
            id=str(order.order_id),
            pickup_number=order.pickup_number,
            customer_name=order.customer_name,
            email=order.email,
            status=order.status.value,
            subtotal_cents=order.subtotal.amount_cents,
            tax_cents=order.tax.amount_cents,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            notes=order.notes,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        order_model.items = [
            OrderItemModel(
                id=str(item.item_id),
                order_id=str(order.order_id),
                position=position,
                menu_item_id=int(item.menu_item_id) if item.menu_item_id is not None else None,
                item_name=item.item_name,
                quantity=item.quantity,
                unit_price_cents=item.unit_price.amount_cents,
                total_price_cents=item.total_price.amount_cents,
                currency=item.unit_price.currency,
                special_instructions=item.special_instructions,
                modifiers=[
                    OrderItemModifierModel(
                        position=modifier_position,
                        modifier_name=modifier.modifier_name,
                        price_adjustment_cents=modifier.price_adjustment.amount_cents,
                        currency=modifier.price_adjustment.currency,
                    )
                    for modifier_position, modifier in enumerate(item.modifiers)
                ],
            )
            for position, item in enumerate(order.items)
        ]
        return order_model

    def _to_domain(self, model: OrderModel) -> Order:
        items = [
            OrderItem(
                item_id=OrderItemId(item.id),
                menu_item_id=MenuItemId(item.menu_item_id) if item.menu_item_id is not None else None,
                item_name=item.item_name,
                quantity=item.quantity,
                unit_price=Money(amount_cents=item.unit_price_cents, currency=item.currency),
                total_price=Money(amount_cents=item.total_price_cents, currency=item.currency),
                special_instructions=item.special_instructions,
                modifiers=[
                    OrderItemModifier(
                        modifier_name=modifier.modifier_name,
                        price_adjustment=Money(
                            amount_cents=modifier.price_adjustment_cents,
                            currency=modifier.currency,
                        ),
                    )
                    for modifier in item.modifiers
                ],
            )
            for item in model.items
        ]
        return Order(
            order_id=OrderId(model.id),
            pickup_number=model.pickup_number,
            customer_name=model.customer_name,
            email=model.email,
            status=OrderStatus(model.status),
            items=items,
            subtotal=Money(amount_cents=model.subtotal_cents, currency=model.currency),
            tax=Money(amount_cents=model.tax_cents, currency=model.currency),
            total=Money(amount_cents=model.total_cents, currency=model.currency),
            notes=model.notes,
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
            version=model.version,
        )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
