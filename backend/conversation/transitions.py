"""
Pure conversation transition function.

(state, ticket, utterance) -> Transition(state, ticket, reply, decision)

Rules:
- Pure: no IO, no clocks. Randomness comes only from the injected rng.
- Total: every ConversationState has exactly one handler in _HANDLERS,
  checked at import time.
- Never raises on any utterance: unmatched input routes to a clarifying
  reply for the current state.
- Matching is case-insensitive substring search, first rule wins.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Callable, Iterable

from constants import (
    CONFIRM_SUBMIT_KEYWORDS,
    PRODUCT_MOBILE_APP_KEYWORDS,
    PRODUCT_WEBSITE_KEYWORDS,
    RESPONSE_WINDOWS,
    TICKET_ID_MAX,
    TICKET_ID_MIN,
    TICKET_ID_PREFIX,
    URGENCY_HIGH_KEYWORDS,
    URGENCY_MEDIUM_KEYWORDS,
)
from conversation import prompts
from conversation.enums.state import ConversationState
from conversation.enums.ticket_fields import Product, Urgency
from conversation.ticket import TicketContext


@dataclass(frozen=True)
class Transition:
    """Outcome of one utterance: next state, next ticket, spoken reply."""
    state: ConversationState
    ticket: TicketContext
    reply: str
    # Short machine-readable tag for logs ("product_matched", "clarify", ...)
    decision: str


_Handler = Callable[[TicketContext, str, str, random.Random], Transition]


# =============================================================================
# Small helpers
# =============================================================================

def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(k in text for k in keywords)


def new_ticket_id(rng: random.Random) -> str:
    """Return a ticket id like "T-42" (0..9999, no zero padding)."""
    return f"{TICKET_ID_PREFIX}{rng.randint(TICKET_ID_MIN, TICKET_ID_MAX)}"


def _product_label(ticket: TicketContext) -> str:
    return ticket.product.value if ticket.product else "your product"


# =============================================================================
# Per-state handlers
# =============================================================================

def _on_greeting(
    ticket: TicketContext, _utterance: str, text: str, _rng: random.Random
) -> Transition:
    if _contains_any(text, PRODUCT_MOBILE_APP_KEYWORDS):
        return Transition(
            state=ConversationState.COLLECTING_ISSUE,
            ticket=replace(ticket, product=Product.MOBILE_APP),
            reply=prompts.ASK_ISSUE_MOBILE_APP,
            decision="product_matched",
        )

    if _contains_any(text, PRODUCT_WEBSITE_KEYWORDS):
        return Transition(
            state=ConversationState.COLLECTING_ISSUE,
            ticket=replace(ticket, product=Product.WEBSITE),
            reply=prompts.ASK_ISSUE_WEBSITE,
            decision="product_matched",
        )

    return Transition(
        state=ConversationState.GREETING,
        ticket=ticket,
        reply=prompts.ASK_PRODUCT,
        decision="product_unmatched",
    )


def _on_collecting_issue(
    ticket: TicketContext, utterance: str, _text: str, _rng: random.Random
) -> Transition:
    # Stored verbatim, not lower-cased
    return Transition(
        state=ConversationState.COLLECTING_URGENCY,
        ticket=replace(ticket, issue=utterance),
        reply=prompts.ASK_URGENCY,
        decision="issue_recorded",
    )


def _on_collecting_urgency(
    ticket: TicketContext, _utterance: str, text: str, rng: random.Random
) -> Transition:
    if _contains_any(text, URGENCY_HIGH_KEYWORDS):
        urgency = Urgency.HIGH
    elif _contains_any(text, URGENCY_MEDIUM_KEYWORDS):
        urgency = Urgency.MEDIUM
    else:
        urgency = Urgency.LOW

    # Generated exactly once per traversal; a re-entry overwrites it.
    new_ticket = replace(ticket, urgency=urgency, ticket_id=new_ticket_id(rng))

    return Transition(
        state=ConversationState.CONFIRMING,
        ticket=new_ticket,
        reply=prompts.CONFIRM_TICKET.format(
            ticket_id=new_ticket.ticket_id,
            product=_product_label(new_ticket),
            urgency=urgency.value,
        ),
        decision="ticket_created",
    )


def _on_confirming(
    ticket: TicketContext, _utterance: str, text: str, _rng: random.Random
) -> Transition:
    if _contains_any(text, CONFIRM_SUBMIT_KEYWORDS):
        urgency = ticket.urgency or Urgency.LOW
        return Transition(
            state=ConversationState.COMPLETE,
            ticket=ticket,
            reply=prompts.TICKET_SUBMITTED.format(
                ticket_id=ticket.ticket_id,
                window=RESPONSE_WINDOWS[urgency.value],
                urgency=urgency.value,
            ),
            decision="ticket_submitted",
        )

    return Transition(
        state=ConversationState.COMPLETE,
        ticket=ticket,
        reply=prompts.TICKET_SAVED,
        decision="ticket_saved",
    )


def _on_complete(
    ticket: TicketContext, _utterance: str, _text: str, _rng: random.Random
) -> Transition:
    return Transition(
        state=ConversationState.COMPLETE,
        ticket=ticket,
        reply=prompts.ASK_MORE_DETAILS,
        decision="clarify",
    )


# =============================================================================
# Transition table
# =============================================================================

_HANDLERS: dict[ConversationState, _Handler] = {
    ConversationState.GREETING: _on_greeting,
    ConversationState.COLLECTING_ISSUE: _on_collecting_issue,
    ConversationState.COLLECTING_URGENCY: _on_collecting_urgency,
    ConversationState.CONFIRMING: _on_confirming,
    ConversationState.COMPLETE: _on_complete,
}

_missing = set(ConversationState) - set(_HANDLERS)
if _missing:
    raise RuntimeError(f"No transition handler for states: {sorted(s.value for s in _missing)}")


def advance(
    state: ConversationState,
    ticket: TicketContext,
    utterance: str,
    *,
    rng: random.Random,
) -> Transition:
    """
    Compute the next state, ticket and reply for one utterance.

    Does not mutate its inputs.
    """
    return _HANDLERS[state](ticket, utterance, utterance.lower(), rng)
