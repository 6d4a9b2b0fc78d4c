"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for the behavioral constants of the intake service.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers or reply strings scattered elsewhere.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Mapping, Tuple

# =============================================================================
# Product matching (greeting state)
# =============================================================================

PRODUCT_MOBILE_APP_KEYWORDS: Final[Tuple[str, ...]] = ("mobile", "app")
PRODUCT_WEBSITE_KEYWORDS: Final[Tuple[str, ...]] = ("website", "web")

# =============================================================================
# Urgency matching (collecting_urgency state)
# =============================================================================

URGENCY_HIGH_KEYWORDS: Final[Tuple[str, ...]] = ("high", "urgent")
URGENCY_MEDIUM_KEYWORDS: Final[Tuple[str, ...]] = ("medium",)

# =============================================================================
# Confirmation matching (confirming state)
# =============================================================================

CONFIRM_SUBMIT_KEYWORDS: Final[Tuple[str, ...]] = ("yes", "submit")

# =============================================================================
# Ticket ids
# =============================================================================

TICKET_ID_PREFIX: Final[str] = "T-"
TICKET_ID_MIN: Final[int] = 0
TICKET_ID_MAX: Final[int] = 9_999  # inclusive

# Promised first-contact window per urgency
RESPONSE_WINDOWS: Final[Mapping[str, str]] = {
    "high": "2 hours",
    "medium": "24 hours",
    "low": "48 hours",
}

# =============================================================================
# Channel
# =============================================================================

CHANNEL_PATH_PREFIX: Final[str] = "/ws/voice"
WS_CLOSE_POLICY_VIOLATION: Final[int] = 1008
WS_CLOSE_INVALID_SESSION_REASON: Final[str] = "Invalid session"
SESSION_TOKEN_PREFIX: Final[str] = "token_"

# =============================================================================
# Conversation history (LLM context)
# =============================================================================

MAX_HISTORY_TURNS: Final[int] = 8
MAX_HISTORY_CHARS: Final[int] = 6_000

# =============================================================================
# LLM completion
# =============================================================================

LLM_TEMPERATURE: Final[float] = 0.7
LLM_MAX_TOKENS: Final[int] = 150
LLM_TOP_P: Final[float] = 1.0
LLM_TIMEOUT_S_DEFAULT: Final[float] = 5.0

# =============================================================================
# Speech capture (client)
# =============================================================================

SPEECH_LANGUAGE: Final[str] = "en-US"
