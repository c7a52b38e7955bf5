"""Runtime settings, read from ``STOREFRONT_*`` environment variables or ``.env``."""

from decimal import Decimal
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

env_path = Path(__file__).parent.parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=str(env_path),
        extra="ignore",
    )

    environment: str = "development"
    log_level: str | None = None
    log_dir: Path | None = None

    # Pricing
    bulk_discount_threshold: Decimal = Decimal("100")
    bulk_discount_rate: Decimal = Field(default=Decimal("0.05"), ge=0, le=1)
    priority_threshold: Decimal = Decimal("200")

    # Cart and order lifecycle
    cart_line_advisory_limit: int = 10
    estimated_delivery_days: int = 5
    pending_expiry_days: int = 7
    restock_on_cancel: bool = False

    seed_catalog: bool = True


def get_settings(**overrides) -> Settings:
    return Settings(**overrides)
