from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from oap.api.main import create_app
from oap.domain.order.entities import Order
from oap.infrastructure.auth.staff_tokens import issue_staff_token
from oap.infrastructure.db import session as db_session
from oap.infrastructure.db.models.pickup_counter import PICKUP_COUNTER_ROW_ID, PickupCounterModel
from oap.infrastructure.db.models.registry import metadata
from oap.tools import seed


class RecordingNotifier:
    def __init__(self) -> None:
        self.confirmed: list[Order] = []
        self.ready: list[Order] = []

    def order_confirmed(self, order: Order) -> None:
        self.confirmed.append(order)

    def order_ready(self, order: Order) -> None:
        self.ready.append(order)


@pytest.fixture(autouse=True)
def integration_environment(tmp_path: Path, monkeypatch) -> Iterator[Engine]:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'oap.db'}")
    monkeypatch.setenv("STAFF_TOKEN_SECRET", "integration-secret")
    monkeypatch.setenv("ORDER_RATE_LIMIT_MAX", "1000")
    monkeypatch.setenv("CAFE_TIMEZONE", "UTC")
    monkeypatch.setenv("CAFE_CURRENCY", "USD")
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("RESEND_API_KEY", raising=False)

    db_session._build_engine.cache_clear()
    engine = db_session.get_engine()
    metadata.create_all(engine)
    seed.main()
    with Session(engine) as session, session.begin():
        session.add(
            PickupCounterModel(
                id=PICKUP_COUNTER_ROW_ID,
                current_number=0,
                last_reset_date=date(1970, 1, 1),
            )
        )
    yield engine
    engine.dispose()
    db_session._build_engine.cache_clear()


@pytest.fixture
def engine(integration_environment: Engine) -> Engine:
    return integration_environment


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(notifier: RecordingNotifier) -> Iterator[TestClient]:
    app = create_app()
    app.state.order_notifier = notifier
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def staff_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_staff_token('kitchen-1')}"}


@pytest.fixture
def coffee_order():
    def build(**overrides) -> dict:
        payload = {
            "customerName": "Alex",
            "items": [
                {
                    "menuItemId": 1,
                    "itemName": "House Blend",
                    "quantity": 2,
                    "unitPrice": "5.00",
                    "modifiers": [{"modifierName": "Oat Milk", "priceAdjustment": "0.75"}],
                }
            ],
        }
        payload.update(overrides)
        return payload

    return build
