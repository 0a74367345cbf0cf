from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from oap.application.ports.repositories import SettingsRepository
from oap.infrastructure.db.models.setting import SettingModel
from oap.infrastructure.db.repositories.errors import translate_errors
from oap.infrastructure.db.session import get_engine


class SqlAlchemySettingsRepository(SettingsRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, key: str) -> str | None:
        with translate_errors("get_setting"), Session(self._engine) as session:
            model = session.get(SettingModel, key)
            return model.value if model is not None else None

    def set(self, key: str, value: str) -> None:
        with translate_errors("set_setting"), Session(self._engine) as session:
            with session.begin():
                model = session.get(SettingModel, key)
                if model is None:
                    session.add(SettingModel(key=key, value=value))
                else:
                    model.value = value

    def list_all(self) -> dict[str, str]:
        statement = select(SettingModel).order_by(SettingModel.key)
        with translate_errors("list_settings"), Session(self._engine) as session:
            return {model.key: model.value for model in session.execute(statement).scalars()}
