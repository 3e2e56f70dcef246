"""
CLI runner module.

Provides commands:
- init: Write a default config
- extract: Extract data from receipt images
- parse-text: Extract data from recognized text
- process: Extract and record a receipt (optionally save the expense)
- expenses: List saved expenses
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
