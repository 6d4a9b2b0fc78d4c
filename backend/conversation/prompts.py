"""
Reply templates and the LLM system prompt.

Templates use str.format() fields; transitions fill them in. Wording is
tuned for speech synthesis: no markdown, short sentences.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Keyword engine replies
# =============================================================================

GREETING: Final[str] = (
    "Hi, I'm your support assistant. What product are you calling about today?"
)

ASK_ISSUE_MOBILE_APP: Final[str] = (
    "I understand you're having issues with the mobile app. "
    "What specific problem are you experiencing?"
)

ASK_ISSUE_WEBSITE: Final[str] = (
    "I see you're having problems with the website. "
    "What specific issues are you experiencing?"
)

ASK_PRODUCT: Final[str] = (
    "I understand. What product or service are you calling about today?"
)

ASK_URGENCY: Final[str] = (
    "I understand the issue. How urgent is this for you - low, medium, or high priority?"
)

CONFIRM_TICKET: Final[str] = (
    "I've created ticket #{ticket_id} for {product} with {urgency} priority. "
    "Should I submit this now?"
)

TICKET_SUBMITTED: Final[str] = (
    "Perfect! Your ticket #{ticket_id} has been submitted. "
    "Our team will contact you within {window} for {urgency} priority issues."
)

TICKET_SAVED: Final[str] = (
    "No problem. Your ticket has been saved but not submitted. "
    "You can contact us again anytime."
)

ASK_MORE_DETAILS: Final[str] = "I understand. Can you provide more details?"

# Used when the completion service returns an empty message
LLM_EMPTY_FALLBACK: Final[str] = "I understand. Can you tell me more?"

# =============================================================================
# LLM system prompt
# =============================================================================

SYSTEM_PROMPT_VERSION: Final[str] = "v1"

SYSTEM_PROMPT_V1: Final[str] = """
You are a helpful support assistant for a technology company. Your role is to help users create support tickets through natural conversation.

Conversation flow:
1. Greet and ask what product they need help with
2. Ask about the specific issue
3. Ask about urgency (low, medium, or high)
4. Summarize and create a ticket with format "T-####" (use random numbers)
5. Confirm if they want to submit
6. Complete and tell them response time (2 hours for high, 24 hours for medium, 48 hours for low)

Keep responses:
- Natural and conversational
- Short and concise (1-2 sentences max)
- Empathetic and professional
- Plain speech only, no markdown or lists

Example conversation:
User: "Um, the mobile app"
You: "Got it, the mobile app. What issue are you experiencing?"

User: "It crashes when I try to upload photos"
You: "I understand, the app crashes during photo uploads. How urgent is this for you - low, medium, or high?"

User: "It's pretty urgent, high"
You: "I've created ticket #T-3847 for the mobile app crash during photo uploads with high priority. Should I submit this now?"

User: "Yes please"
You: "Perfect! Your ticket has been submitted. Our team will contact you within 2 hours for high priority issues."
""".strip()
