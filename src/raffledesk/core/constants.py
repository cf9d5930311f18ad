"""Domain constants for RaffleDesk."""

from __future__ import annotations

# ── Ticket Statuses ─────────────────────────────────────────────────
TICKET_FREE = "free"
TICKET_RESERVED = "reserved"
TICKET_APPROVED = "approved"

# ── Purchase Statuses ───────────────────────────────────────────────
PURCHASE_PENDING = "pending"
PURCHASE_APPROVED = "approved"
PURCHASE_REJECTED = "rejected"

PURCHASE_STATUSES: list[str] = [PURCHASE_PENDING, PURCHASE_APPROVED, PURCHASE_REJECTED]

# Purchases that currently own their tickets
ACTIVE_PURCHASE_STATUSES: set[str] = {PURCHASE_PENDING, PURCHASE_APPROVED}

# Ticket status a purchase imposes on the tickets it owns
TICKET_STATUS_FOR_PURCHASE: dict[str, str] = {
    PURCHASE_PENDING: TICKET_RESERVED,
    PURCHASE_APPROVED: TICKET_APPROVED,
}

# Filter value for listing every purchase
PURCHASE_FILTER_ALL = "all"

# ── Buyer Fields ────────────────────────────────────────────────────
REQUIRED_BUYER_FIELDS: list[str] = ["name", "email", "phone", "reference"]
EDITABLE_PURCHASE_FIELDS: list[str] = ["name", "email"]

# ── Storage ─────────────────────────────────────────────────────────
DEFAULT_CAPACITY = 1000
MAX_CAPACITY = 100_000  # Upper bound on tickets per inventory
CORRUPT_SUFFIX = ".corrupt"
SLOW_WRITE_THRESHOLD_MS = 200  # Log store writes slower than this

# ── Proof Uploads ───────────────────────────────────────────────────
PROOF_FILE_PREFIX = "proof-"
