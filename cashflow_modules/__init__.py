"""
Cash-Flow Modules.

Thin orchestration layers over the kernel and engines.

Modules:
- Finance: source collections, operator entry, projections, audit views

Processing logic lives in ``cashflow_engines``.
"""

from cashflow_modules import finance

__all__ = ["finance"]
