from decimal import Decimal
from pathlib import Path
import os
import sys

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from src.core.database import Base  # noqa: E402
from src.modules.appointments import models as appointment_models  # noqa: E402,F401
from src.modules.payments.broker import PaymentOrder, PaymentOrderBroker  # noqa: E402
from src.modules.pricing.rates import RateEntry, RateTable  # noqa: E402
from src.modules.users import models as user_models  # noqa: E402,F401
from src.shared.enums import CategoryKind  # noqa: E402

TEST_KEY_SECRET = "rzp_test_secret"
BOOKING_DATE = "2025-06-01"


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def rate_table():
    return RateTable(
        [
            RateEntry(name="Wheat", rate=Decimal("25"), kind=CategoryKind.AREA),
            RateEntry(name="Sugarcane", rate=Decimal("20"), kind=CategoryKind.AREA),
            RateEntry(name="Transport", rate=Decimal("14"), kind=CategoryKind.DISTANCE_TRANSPORT),
            RateEntry(name="Customize", rate=Decimal("14"), kind=CategoryKind.DISTANCE_CUSTOM),
        ]
    )


class FakePaymentProvider:
    """In-memory stand-in for the Razorpay Orders API."""

    def __init__(self):
        self.orders: dict[str, PaymentOrder] = {}
        self.receipts: list[str] = []

    async def create_order(self, amount: int, currency: str, receipt: str) -> PaymentOrder:
        order = PaymentOrder(order_id=f"order_{len(self.orders) + 1}", amount=amount, currency=currency, status="created")
        self.orders[order.order_id] = order
        self.receipts.append(receipt)
        return order

    async def fetch_order(self, order_id: str) -> PaymentOrder:
        return self.orders[order_id]


@pytest.fixture
def payment_provider():
    return FakePaymentProvider()


@pytest.fixture
def broker(payment_provider):
    return PaymentOrderBroker(payment_provider, key_secret=TEST_KEY_SECRET)


@pytest.fixture
def booking_data():
    """Factory for a valid area-category booking payload in wire (camelCase) form."""

    def _make(**overrides):
        data = {
            "name": "Ramesh Patil",
            "email": "ramesh@example.com",
            "contactNumber": "9876543210",
            "address": "Near the temple",
            "village": "Shirur",
            "pincode": "412210",
            "district": "Pune",
            "state": "Maharashtra",
            "workCategory": "Wheat",
            "acre": "4",
            "sevenTwelveNumber": "712/45",
            "khataNumber": "K-19",
            "date": BOOKING_DATE,
            "time": ["10:00"],
            "remark": "Gate on the east side",
        }
        data.update(overrides)
        return {key: value for key, value in data.items() if value is not None}

    return _make
