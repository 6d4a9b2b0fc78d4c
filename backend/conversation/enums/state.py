"""
Conversation state enumeration.

Rules:
- This enum defines ONLY the intake phases of one session.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in conversation.transitions.
"""

from __future__ import annotations

from enum import Enum


class ConversationState(str, Enum):
    """
    Linear intake phases for a single support-ticket conversation.

    GREETING is the product-collection phase: a session starts here and
    stays here until a product keyword is heard. There is no separate
    "collecting product" phase.
    """

    GREETING = "greeting"
    COLLECTING_ISSUE = "collecting_issue"
    COLLECTING_URGENCY = "collecting_urgency"
    CONFIRMING = "confirming"
    COMPLETE = "complete"
