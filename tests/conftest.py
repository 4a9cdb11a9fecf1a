import pytest

from insightflow.container import AppServices
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.datasources.adapters.sample_rows import generate_sales_data
from insightflow.shared.infrastructure.database import Base, build_engine, build_session_factory
from insightflow.shared.infrastructure.settings import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite+pysqlite://",
        scheduler_enabled=False,
        refresh_simulated_delay_seconds=0,
    )


@pytest.fixture
def session_factory(settings: Settings):
    """Fresh in-memory database per test, shared across threads through a StaticPool."""
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def services(settings: Settings, session_factory) -> AppServices:
    services = AppServices.build(settings, session_factory=session_factory)
    services.load()
    return services


@pytest.fixture
def actor() -> UserIdentity:
    return UserIdentity(id="user-1", email="ana.silva@example.com", name="ana.silva", role="EDITOR")


@pytest.fixture
def sales_rows() -> list[dict]:
    return generate_sales_data()
