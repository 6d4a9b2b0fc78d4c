"""
Ticket context: the fields accumulated over one intake conversation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from conversation.enums.ticket_fields import Product, Urgency


@dataclass(frozen=True)
class TicketContext:
    """
    Immutable snapshot of ticket fields.

    Every field is None until the conversation fills it in. The issue is
    stored exactly as spoken; only keyword matching is case-insensitive.
    """

    product: Product | None = None
    issue: str | None = None
    urgency: Urgency | None = None
    ticket_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation used by the HTTP API."""
        return {
            "product": self.product.value if self.product else None,
            "issue": self.issue,
            "urgency": self.urgency.value if self.urgency else None,
            "ticketId": self.ticket_id,
        }
