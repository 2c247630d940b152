from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, model_validator

from taxplan.core.brackets import DEFAULT_STATE_TAX_RATE, MAX_SUPPORTED_AMOUNT
from taxplan.core.models import StateTaxPolicy

ENV_BOOL_TRUE = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ENV_BOOL_TRUE


def _env_decimal(name: str, default: Decimal) -> Decimal:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return Decimal(value.strip())
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a decimal number, got {value!r}") from exc


class Settings(BaseModel):
    state_flat_rate: Decimal = Field(
        default_factory=lambda: _env_decimal("TAXPLAN_STATE_FLAT_RATE", DEFAULT_STATE_TAX_RATE)
    )
    max_amount: Decimal = Field(default_factory=lambda: _env_decimal("TAXPLAN_MAX_AMOUNT", MAX_SUPPORTED_AMOUNT))
    log_to_file: bool = Field(default_factory=lambda: _env_bool("TAXPLAN_LOG_TO_FILE", False))
    log_dir: str = Field(default_factory=lambda: os.getenv("TAXPLAN_LOG_DIR", "logs"))
    build_version: str = Field(default_factory=lambda: os.getenv("BUILD_VERSION", "dev"))
    build_sha: str = Field(default_factory=lambda: os.getenv("BUILD_SHA", "local"))

    model_config = ConfigDict(frozen=True)

    # defaults come from default_factory, which field validators skip
    @model_validator(mode="after")
    def _check_limits(self) -> "Settings":
        rate = self.state_flat_rate
        if not rate.is_finite() or not (Decimal("0") <= rate <= Decimal("1")):
            raise ValueError(f"TAXPLAN_STATE_FLAT_RATE must be between 0 and 1, got {rate}")
        if not self.max_amount.is_finite() or self.max_amount <= 0:
            raise ValueError(f"TAXPLAN_MAX_AMOUNT must be positive, got {self.max_amount}")
        return self

    def state_policy(self) -> StateTaxPolicy:
        return StateTaxPolicy.flat(self.state_flat_rate)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
