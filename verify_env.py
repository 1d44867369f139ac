import asyncio
import os

from dotenv import load_dotenv
import httpx
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from src.core.database import resolve_async_database_url

# 1. Load the .env file
load_dotenv()

DB_LABELS = {
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
    "sqlite": "SQLite (tests)",
}

HEALTH_QUERIES = {
    "postgresql": "SELECT version();",
    "mysql": "SELECT VERSION();",
}


async def verify_database():
    print("-" * 30)
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        print("❌ Error: DATABASE_URL is not set")
        return False

    try:
        async_url = resolve_async_database_url(db_url)
        url = make_url(async_url)
    except Exception as exc:  # noqa: BLE001 - surface clear setup errors
        print(f"❌ Unsupported database configuration: {exc}")
        return False

    backend = url.get_backend_name()
    label = DB_LABELS.get(backend, backend)
    print(f"🔍 Checking {label} connection...")
    print(f"ℹ️  DSN: {url.render_as_string(hide_password=True)}")

    query = HEALTH_QUERIES.get(backend, "SELECT 1")

    try:
        engine = create_async_engine(async_url, echo=False)
        async with engine.connect() as conn:
            result = await conn.execute(text(query))
            version = result.scalar()
            print(f"✅ {label} connected! Returned: {version}")
        await engine.dispose()
        return True
    except Exception as e:  # noqa: BLE001 - surface connection failure
        print(f"❌ {label} connection failed: {e}")
        return False


async def verify_razorpay():
    print("-" * 30)
    print("🔍 Checking Razorpay credentials...")
    key_id = os.getenv("RAZORPAY_KEY_ID")
    key_secret = os.getenv("RAZORPAY_KEY_SECRET")
    if not key_id or not key_secret:
        print("❌ Error: RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET not set (online payment disabled)")
        return False

    base_url = os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com")
    print(f"ℹ️  Key id: {key_id[:8]}...")  # hide the rest of the key

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
            response = await client.get("/v1/orders", params={"count": 1}, auth=(key_id, key_secret))
    except httpx.HTTPError as e:
        print(f"❌ Razorpay unreachable: {e}")
        return False

    if response.status_code == 200:
        print("✅ Razorpay credentials accepted!")
        return True
    print(f"❌ Razorpay rejected the credentials (HTTP {response.status_code})")
    return False


async def main():
    print("🚀 Verifying environment configuration...")

    db_ok = await verify_database()
    razorpay_ok = await verify_razorpay()

    print("-" * 30)
    if db_ok and razorpay_ok:
        print("🎉 All core services are configured correctly.")
    else:
        print("⚠️  Warning: some checks failed, review your .env file.")

if __name__ == "__main__":
    asyncio.run(main())
