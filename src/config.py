"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Pricing
    default_city: str = "Karachi"  # city used by the phone-order flow

    # Status-progression simulator
    simulation_enabled: bool = True
    simulation_interval_seconds: float = 10.0
    simulation_progress_probability: float = 0.3  # chance one order moves per tick
    system_actor: str = "system@marketplace.pk"

    # Store
    seed_mock_data: bool = True

    # API
    rate_limit: str = "100/minute"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
