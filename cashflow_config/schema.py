"""
ForecastSettings schema.

The human-editable knobs of the forecast: base currency, window length,
and the two policies where the legacy dashboard behavior is a judgement
call (unknown currencies, quarter alignment).  YAML files are parsed into
this type by the loader; services receive it by injection.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import timedelta
from typing import Any, Self

from cashflow_kernel.domain.currency import CurrencyRegistry
from cashflow_kernel.domain.policies import QuarterAlignment, UnknownCurrencyPolicy
from cashflow_kernel.exceptions import InvalidCurrencyError, InvalidSettingError
from cashflow_kernel.logging_config import get_logger

logger = get_logger("config.schema")


def _coerce_policy(enum_cls: type, setting: str, value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidSettingError(setting, value, f"expected one of: {allowed}") from None


@dataclass(frozen=True)
class ForecastSettings:
    """
    Configuration schema for the cash-flow forecast.

    Contract:
        All fields have defaults matching the legacy dashboard (PKR base,
        six-month window, calendar quarters) except the unknown-currency
        policy, which defaults to FLAG so mis-forecasts are visible.
        ``__post_init__`` validates and normalizes every field.

    Guarantees:
        - ``base_currency`` is a registered ISO 4217 code.
        - ``window_months`` is between 1 and 60.
        - ``max_rate_age_hours`` is positive or None (no staleness check).
    """

    base_currency: str = "PKR"
    window_months: int = 6
    unknown_currency_policy: UnknownCurrencyPolicy = UnknownCurrencyPolicy.FLAG
    quarter_alignment: QuarterAlignment = QuarterAlignment.CALENDAR
    max_rate_age_hours: int | None = 24
    default_manual_category: str = "General"

    def __post_init__(self) -> None:
        try:
            base = CurrencyRegistry.validate(self.base_currency)
        except InvalidCurrencyError as e:
            raise InvalidSettingError("base_currency", self.base_currency, str(e)) from e
        object.__setattr__(self, "base_currency", base)

        if isinstance(self.window_months, bool) or not isinstance(self.window_months, int):
            raise InvalidSettingError("window_months", self.window_months, "must be an integer")
        if not 1 <= self.window_months <= 60:
            raise InvalidSettingError("window_months", self.window_months, "must be 1-60")

        object.__setattr__(self, "unknown_currency_policy", _coerce_policy(
            UnknownCurrencyPolicy, "unknown_currency_policy", self.unknown_currency_policy,
        ))
        object.__setattr__(self, "quarter_alignment", _coerce_policy(
            QuarterAlignment, "quarter_alignment", self.quarter_alignment,
        ))

        if self.max_rate_age_hours is not None and (
            isinstance(self.max_rate_age_hours, bool)
            or not isinstance(self.max_rate_age_hours, int)
            or self.max_rate_age_hours <= 0
        ):
            raise InvalidSettingError(
                "max_rate_age_hours", self.max_rate_age_hours, "must be a positive integer",
            )

        if not str(self.default_manual_category).strip():
            raise InvalidSettingError(
                "default_manual_category", self.default_manual_category, "cannot be blank",
            )

    @property
    def max_rate_age(self) -> timedelta | None:
        if self.max_rate_age_hours is None:
            return None
        return timedelta(hours=self.max_rate_age_hours)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create settings with the dashboard defaults."""
        logger.info("forecast_settings_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create settings from a dictionary (e.g., loaded from YAML)."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidSettingError(unknown[0], data[unknown[0]], "unknown setting")
        logger.info(
            "forecast_settings_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Plain-value dict (enums as their values), the inverse of from_dict."""
        data = asdict(self)
        data["unknown_currency_policy"] = self.unknown_currency_policy.value
        data["quarter_alignment"] = self.quarter_alignment.value
        return data
