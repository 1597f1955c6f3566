"""
Policies -- Named choices where the legacy dashboard behavior is ambiguous.

Both enums default (see ``cashflow_config.schema.ForecastSettings``) to
values that keep forecasts comparable with the legacy dashboard while
making the degraded cases visible.
"""

from enum import Enum


class UnknownCurrencyPolicy(str, Enum):
    """What the normalizer does when a record's currency has no rate."""

    TREAT_AS_BASE = "treat_as_base"  # legacy: multiplier 1, nothing reported
    FLAG = "flag"  # multiplier 1, event flagged and an issue reported
    EXCLUDE = "exclude"  # record dropped and an issue reported


class QuarterAlignment(str, Enum):
    """Which months a Quarterly / Yearly overhead lands in."""

    CALENDAR = "calendar"  # Jan/Apr/Jul/Oct; Yearly in January
    START_DATE = "start_date"  # every 3 / 12 months from the start month
