"""
Database models for URL shortener.

Click events live in the same database as the URL records they belong to,
so a click and its counter increment can share one transaction.
"""

from .url import URL
from .click import ClickEvent

__all__ = ["URL", "ClickEvent"]
