import pytest
from pydantic import ValidationError

from insightflow.shared.infrastructure.settings import DEFAULT_ENCRYPTION_KEY, Settings

PRODUCTION = {
    "environment": "production",
    "cors_origins": ["https://app.insightflow.example"],
    "database_url": "postgresql://insightflow:secret@db:5432/insightflow",
}


def test_production_rejects_default_encryption_key() -> None:
    with pytest.raises(ValidationError):
        Settings(**PRODUCTION, encryption_key=DEFAULT_ENCRYPTION_KEY)


def test_production_accepts_a_strong_key() -> None:
    settings = Settings(**PRODUCTION, encryption_key="k" * 40)
    assert settings.database_url.startswith("postgresql+psycopg://")


def test_default_key_is_fine_outside_production() -> None:
    assert Settings(environment="test").encryption_key == DEFAULT_ENCRYPTION_KEY
