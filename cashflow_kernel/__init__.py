"""
Cash-Flow Kernel

Pure domain foundation for the cash-flow forecasting engine:
- Immutable source records and derived cash-flow events
- Currency registry and base-currency rate tables
- Injectable clock (engines never read wall-clock time)
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
