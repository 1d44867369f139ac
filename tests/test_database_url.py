import pytest
from sqlalchemy.engine import make_url

from src.core.database import resolve_async_database_url


@pytest.mark.parametrize(
    ("raw_url", "driver"),
    [
        ("postgres://booking:pass@db:5432/landwork", "postgresql+asyncpg"),
        ("postgresql+psycopg2://booking:pass@db:5432/landwork", "postgresql+asyncpg"),
        ("mysql+pymysql://booking:pass@db:3306/landwork", "mysql+asyncmy"),
        ("sqlite:///./landwork.db", "sqlite+aiosqlite"),
    ],
)
def test_sync_drivers_are_coerced_to_async(raw_url, driver):
    assert make_url(resolve_async_database_url(raw_url)).drivername == driver


def test_coercion_keeps_credentials_and_query():
    resolved = make_url(resolve_async_database_url("mysql://booking:s3cret@db:3306/landwork?charset=utf8mb4"))
    assert resolved.password == "s3cret"
    assert resolved.database == "landwork"
    assert resolved.query["charset"] == "utf8mb4"


def test_async_url_passes_through_unchanged():
    assert resolve_async_database_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"


def test_unsupported_dialect_raises():
    with pytest.raises(ValueError, match="Unsupported database dialect"):
        resolve_async_database_url("mssql+pyodbc://booking:pass@db:1433/landwork")
