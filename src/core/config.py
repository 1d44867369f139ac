"""Application configuration via Pydantic settings."""

from decimal import Decimal
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkCategorySetting(BaseModel):
    """One entry of the WORK_CATEGORIES JSON list."""

    name: str
    rate: Decimal
    kind: str | None = None


class Settings(BaseSettings):
    """Central configuration object loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Land Work Booking API"
    debug: bool = False
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = "HS256"
    jwt_expires_in_minutes: int = Field(60, alias="JWT_EXPIRES_IN")

    allowed_origin: str = Field("http://localhost:3000", alias="ALLOWED_ORIGIN")

    work_categories: list[WorkCategorySetting] = Field(default_factory=list, alias="WORK_CATEGORIES")
    transport_minimum_fare: Decimal = Field(Decimal("500"), alias="TRANSPORT_MINIMUM_FARE")
    customize_rate: Decimal = Field(Decimal("14"), alias="CUSTOMIZE_RATE")
    customize_minimum_fare: Decimal = Field(Decimal("500"), alias="CUSTOMIZE_MINIMUM_FARE")

    payment_currency: str = Field("INR", alias="PAYMENT_CURRENCY")
    payment_min_order_amount: int = Field(100, alias="PAYMENT_MIN_ORDER_AMOUNT")
    razorpay_key_id: str | None = Field(None, alias="RAZORPAY_KEY_ID")
    razorpay_key_secret: str | None = Field(None, alias="RAZORPAY_KEY_SECRET")
    razorpay_api_base: str = Field("https://api.razorpay.com", alias="RAZORPAY_API_BASE")
    razorpay_timeout_seconds: float = Field(10.0, alias="RAZORPAY_TIMEOUT_SECONDS")

    pincode_api_base: str = Field("https://api.postalpincode.in", alias="PINCODE_API_BASE")
    pincode_timeout_seconds: float = Field(5.0, alias="PINCODE_TIMEOUT_SECONDS")

    twilio_account_sid: str | None = Field(None, alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: str | None = Field(None, alias="TWILIO_AUTH_TOKEN")
    twilio_whatsapp_number: str | None = Field(None, alias="TWILIO_WHATSAPP_NUMBER")
    twilio_api_base: str = Field("https://api.twilio.com", alias="TWILIO_API_BASE")
    default_country_code: str = Field("+91", alias="DEFAULT_COUNTRY_CODE")

    reset_code_ttl_minutes: int = Field(60, alias="RESET_CODE_TTL_MINUTES")

    slot_day_start: str = Field("09:00", alias="SLOT_DAY_START")
    slot_day_end: str = Field("17:00", alias="SLOT_DAY_END")
    slot_step_minutes: int = Field(30, alias="SLOT_STEP_MINUTES", gt=0)

    @field_validator("allowed_origin")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
