"""Domain errors raised by the auction services.

Every error carries an HTTP-ish ``status_code``, a stable ``code`` and a
human ``detail``; ``extra`` holds structured context for the caller (the
request layer merges it into the JSON body). No error is raised after a
state change has been committed.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class AuctionError(Exception):
    status_code = 400
    code = "auction_error"

    def __init__(self, detail: str, **extra: Any):
        super().__init__(detail)
        self.detail = detail
        self.extra: Dict[str, Any] = extra

    def as_dict(self) -> Dict[str, Any]:
        body = {"detail": self.detail, "code": self.code}
        body.update(self.extra)
        return body


# --- ValidationError: malformed input, nothing touched ---

class ValidationError(AuctionError):
    status_code = 400
    code = "validation_error"


class InvalidAmount(ValidationError):
    code = "invalid_amount"


# --- NotFoundError ---

class NotFoundError(AuctionError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, id=entity_id)


# --- ConstraintError: well-formed request refused by a business rule ---

class ConstraintError(AuctionError):
    status_code = 409
    code = "constraint_error"


class RoleFull(ConstraintError):
    code = "role_full"


class InsufficientCredits(ConstraintError):
    code = "insufficient_credits"


class PlayerAlreadyOwned(ConstraintError):
    code = "player_already_owned"


class PlayerNotOwned(ConstraintError):
    code = "player_not_owned"


class AuctionNotActive(ConstraintError):
    code = "auction_not_active"


class AuctionExpired(ConstraintError):
    code = "auction_expired"


class AuctionAlreadyActiveForPlayer(ConstraintError):
    code = "auction_already_active"


class TieUnresolved(ConstraintError):
    code = "tie_unresolved"


class NoPendingTie(TieUnresolved):
    code = "no_pending_tie"


class NotTiedBidder(TieUnresolved):
    code = "not_tied_bidder"


class CreditsBelowSpent(ConstraintError):
    code = "credits_below_spent"


class NoAuctionsToDelete(ConstraintError):
    code = "no_auctions_to_delete"


def require_amount(value: Any, *, positive: bool = False, field: str = "amount") -> int:
    """Return ``value`` if it is an acceptable credit amount, else raise InvalidAmount.

    Booleans are rejected even though they are ints. ``positive`` requires > 0
    (overrides and durations), otherwise >= 0 (bids, where 0 is a bluff).
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{field} must be an integer", field=field, value=value)
    if positive and value <= 0:
        raise InvalidAmount(f"{field} must be greater than 0", field=field, value=value)
    if value < 0:
        raise InvalidAmount(f"{field} must be 0 or more", field=field, value=value)
    return value


def not_found(entity: str, entity_id: Any, obj: Optional[object]) -> Any:
    if obj is None:
        raise NotFoundError(entity, entity_id)
    return obj
