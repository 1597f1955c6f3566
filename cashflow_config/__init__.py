"""
cashflow_config -- single public entrypoint for forecast configuration.

Responsibility:
    ``get_active_config()`` is the way services obtain ``ForecastSettings``.
    With no path it reads the packaged ``defaults.yaml``; with a path it
    reads that file's ``settings`` section.  Every successful call emits a
    ``CASHFLOW_CONFIG_TRACE`` log record with the settings checksum so a
    projection can be tied back to the configuration that produced it.

Architecture position:
    Configuration -- sits above ``cashflow_kernel`` / ``cashflow_engines``
    and below ``cashflow_modules``.  The kernel and engines never import
    from this package.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``InvalidSettingError`` -- a setting is unknown or out of range.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cashflow_config.loader import (
    compute_checksum,
    load_sources,
    load_yaml_file,
    parse_rate_table,
    parse_settings,
    parse_sources,
)
from cashflow_config.schema import ForecastSettings

_logger = logging.getLogger("cashflow.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | None = None) -> ForecastSettings:
    """Load and validate forecast settings.

    Args:
        config_path: YAML file with a ``settings`` mapping.  Defaults to
            the packaged ``defaults.yaml``.

    Returns:
        Validated ``ForecastSettings``.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)
    settings = parse_settings(data.get("settings") or {})

    _logger.info(
        "CASHFLOW_CONFIG_TRACE",
        extra={
            "trace_type": "CASHFLOW_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": compute_checksum(settings),
            "base_currency": settings.base_currency,
            "window_months": settings.window_months,
            "unknown_currency_policy": settings.unknown_currency_policy.value,
            "quarter_alignment": settings.quarter_alignment.value,
        },
    )
    return settings


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ForecastSettings",
    "compute_checksum",
    "get_active_config",
    "load_sources",
    "load_yaml_file",
    "parse_rate_table",
    "parse_settings",
    "parse_sources",
]
