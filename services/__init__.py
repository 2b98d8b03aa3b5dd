"""
Service layer for the spare parts import system.

This package contains framework-agnostic business logic that can be used
by the CLI, the API or background tasks.
"""

__version__ = "1.0.0"
