"""
Closed value sets for ticket fields.

Values are the exact strings stored on the ticket and read back to the
caller in replies.
"""

from __future__ import annotations

from enum import Enum


class Product(str, Enum):
    """Products the intake flow recognizes."""

    MOBILE_APP = "mobile app"
    WEBSITE = "website"


class Urgency(str, Enum):
    """
    Ticket priority.

    LOW is the fallback whenever the caller names no recognizable level.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
