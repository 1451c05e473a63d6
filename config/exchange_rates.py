from collections.abc import Mapping
from datetime import date, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator, model_validator

from domain.exceptions.rates import ConfigurationError
from infrastructure.monitoring.logger import EventKind, LogLevel
from infrastructure.registry import PROVIDER_REGISTRY, STORE_REGISTRY, TRANSPORT_REGISTRY, validate_options

DEFAULT_RETRIEVE_EVERY_MS = 300_000


class RunningMode(str, Enum):
    ISOLATED = "isolated"
    SHARED = "shared"


class DateRange(BaseModel):
    """Inclusive range of dates, written as `start..end`."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError(f"Range start {self.start} is after its end {self.end}")
        return self

    def dates(self) -> list[date]:
        days = (self.end - self.start).days
        return [self.start + timedelta(days=offset) for offset in range(days + 1)]

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


class LogLevels(BaseModel):
    """Log level per event kind. None switches a kind off."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    success: LogLevel | None = None
    failure: LogLevel | None = LogLevel.WARNING
    info: LogLevel | None = LogLevel.INFO

    @field_validator("success", "failure", "info", mode="before")
    @classmethod
    def parse_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.strip().lower() in ("", "off", "none"):
                return None
            return value.strip().upper()
        return value

    def as_dict(self) -> dict[EventKind, LogLevel | None]:
        return {
            EventKind.SUCCESS: self.success,
            EventKind.FAILURE: self.failure,
            EventKind.INFO: self.info,
        }


class ExchangeRatesConfig(BaseModel):
    """
    Complete configuration of one exchange rates service.

    Built once and validated up front: unknown keys, unknown adapters and
    bad adapter options are all rejected here rather than at first use.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: RunningMode = RunningMode.ISOLATED
    name: str = Field(default="exchange_rates", min_length=1)
    shared_name: str | None = None

    provider: str = "openexchangerates"
    provider_options: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    cache: str = "memory"
    cache_options: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    transport: str = "httpx"
    transport_options: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    retrieve_every_ms: int | None = Field(default=DEFAULT_RETRIEVE_EVERY_MS, gt=0)
    fetch_attempts: int = Field(default=1, ge=1)
    retry_wait_ms: int = Field(default=1000, ge=0)
    preload_historic_rates: date | DateRange | None = None
    log_levels: LogLevels = Field(default_factory=LogLevels)

    @field_validator("preload_historic_rates", mode="before")
    @classmethod
    def parse_preload(cls, value: Any) -> Any:
        if isinstance(value, str):
            if ".." in value:
                start, _, end = value.partition("..")
                return {"start": start.strip(), "end": end.strip()}
            return date.fromisoformat(value.strip())
        if isinstance(value, (tuple, list)):
            if len(value) != 2:
                raise ValueError("A preload range needs exactly a start and an end date")
            return {"start": value[0], "end": value[1]}
        return value

    @field_validator("provider_options", "cache_options", "transport_options")
    @classmethod
    def freeze_options(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("provider_options", "cache_options", "transport_options")
    def dump_options(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)

    @model_validator(mode="after")
    def check_adapters(self) -> "ExchangeRatesConfig":
        if self.mode is RunningMode.SHARED and not self.shared_name:
            raise ValueError("shared_name is required when mode is 'shared'")

        checks = (
            (PROVIDER_REGISTRY, "provider", self.provider, self.provider_options),
            (STORE_REGISTRY, "cache", self.cache, self.cache_options),
            (TRANSPORT_REGISTRY, "transport", self.transport, self.transport_options),
        )
        for registry, kind, name, options in checks:
            try:
                validate_options(registry, kind, name, options)
            except ValidationError as e:
                raise ValueError(f"Invalid {kind} options for {name!r}: {e}") from e
        return self

    @property
    def namespace(self) -> str:
        if self.mode is RunningMode.SHARED:
            return f"shared:{self.shared_name}"
        return f"isolated:{self.name}"

    def preload_dates(self) -> list[date]:
        if self.preload_historic_rates is None:
            return []
        if isinstance(self.preload_historic_rates, DateRange):
            return self.preload_historic_rates.dates()
        return [self.preload_historic_rates]


def build_config(**options: Any) -> ExchangeRatesConfig:
    try:
        return ExchangeRatesConfig(**options)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid exchange rates configuration: {e}") from e
