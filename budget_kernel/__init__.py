"""
Budget Kernel - analytics core for public-budget execution data.

Provides the shared foundation for the analytics engine:
- Typed exception hierarchy and error values
- Structured JSON logging
- Pure domain types (filters, periods, enums)
- SQLAlchemy engine and read-only selectors
"""

__version__ = "0.1.0"
