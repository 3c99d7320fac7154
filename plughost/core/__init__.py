"""
plughost Core - Shared infrastructure.

This module contains:
- Event Bus: the default notification sink
- Logging configuration
"""

__all__ = []
