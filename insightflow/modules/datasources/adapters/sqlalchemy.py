from __future__ import annotations

from typing import Any

from pydantic import SecretStr
from sqlalchemy.orm import sessionmaker

from insightflow import models
from insightflow.modules.datasources.domain.models import (
    CsvConnection,
    DataSource,
    JsonConnection,
    MongoConnection,
    PostgresConnection,
    RestApiConnection,
    Schedule,
)
from insightflow.modules.datasources.domain.ports import DataSourceRepositoryPort
from insightflow.modules.security.domain.ports import SecretsVaultPort

CONNECTION_MODELS = {
    "CSV": CsvConnection,
    "JSON": JsonConnection,
    "POSTGRES": PostgresConnection,
    "MONGO": MongoConnection,
    "REST_API": RestApiConnection,
}


def seal_connection(connection: Any, vault: SecretsVaultPort) -> dict[str, Any]:
    payload = connection.model_dump(mode="python")
    for field in connection.secret_fields:
        secret: SecretStr | None = getattr(connection, field)
        payload[field] = vault.encrypt(secret.get_secret_value()) if secret is not None else None
    return payload


def open_connection(source_type: str, payload: dict[str, Any], vault: SecretsVaultPort) -> Any:
    model = CONNECTION_MODELS[source_type]
    data = dict(payload)
    data["type"] = source_type
    for field in model.secret_fields:
        if data.get(field):
            data[field] = vault.decrypt(data[field])
    return model.model_validate(data)


class SqlAlchemyDataSourceRepository(DataSourceRepositoryPort):
    def __init__(self, session_factory: sessionmaker, vault: SecretsVaultPort) -> None:
        self._session_factory = session_factory
        self._vault = vault

    def _to_domain(self, row: models.DataSource) -> DataSource:
        return DataSource(
            id=row.id,
            workspace_id=row.workspace_id,
            name=row.name,
            type=row.type,
            connection=open_connection(row.type, row.connection or {}, self._vault),
            status=row.status,
            schedule=Schedule.model_validate(row.schedule or {}),
            last_error_message=row.last_error_message,
        )

    def list_all(self) -> list[DataSource]:
        with self._session_factory() as db:
            rows = db.query(models.DataSource).order_by(models.DataSource.created_at).all()
            return [self._to_domain(row) for row in rows]

    async def save(self, source: DataSource) -> None:
        with self._session_factory() as db:
            row = db.get(models.DataSource, source.id)
            if row is None:
                row = models.DataSource(id=source.id, workspace_id=source.workspace_id)
                db.add(row)
            row.name = source.name
            row.type = source.type
            row.connection = seal_connection(source.connection, self._vault)
            row.status = source.status
            row.schedule = source.schedule.model_dump(mode="json")
            row.last_error_message = source.last_error_message
            db.commit()
