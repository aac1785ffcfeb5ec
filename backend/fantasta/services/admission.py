from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from fantasta.core.errors import InsufficientCredits, RoleFull, not_found, require_amount
from fantasta.core.game_config import ALL_PLAYER_ROLES, MIN_SLOT_PRICE, ROLE_QUOTAS, ROSTER_SIZE, role_name
from fantasta.models.auction import Auction
from fantasta.models.players import Player
from fantasta.models.roster import RosterEntry
from fantasta.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class CreditBudget:
    players_owned: int
    players_missing: int
    credits_available: int
    reserved_credits: int
    # may be negative; callers show max(0, ...) but compare against the raw value
    usable_credits_raw: int

    @property
    def usable_credits(self) -> int:
        return max(0, self.usable_credits_raw)


@dataclass
class BidAdmission:
    auction_id: int
    user_id: int
    amount: int
    player_id: int
    player_name: str
    player_role: str
    usable_credits: int
    reserved_credits: int
    players_missing: int
    role_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def is_bluff(self) -> bool:
        return self.amount == 0

    def as_dict(self) -> dict:
        return {
            "auction_id": self.auction_id,
            "amount": self.amount,
            "bluff": self.is_bluff,
            "usable_credits": self.usable_credits,
            "reserved_credits": self.reserved_credits,
            "players_missing": self.players_missing,
            "player": {
                "id": self.player_id,
                "name": self.player_name,
                "role": self.player_role,
                "role_name": role_name(self.player_role),
            },
        }


def count_roles(db: Session, user_id: int) -> Dict[str, int]:
    counts = {role: 0 for role in ALL_PLAYER_ROLES}
    rows = (
        db.query(Player.role, func.count(RosterEntry.id))
        .join(RosterEntry, RosterEntry.player_id == Player.id)
        .filter(RosterEntry.user_id == user_id)
        .group_by(Player.role)
        .all()
    )
    for role, count in rows:
        counts[role] = int(count)
    return counts


def compute_budget(user: User, role_counts: Dict[str, int]) -> CreditBudget:
    owned = sum(role_counts.values())
    missing = ROSTER_SIZE - owned
    # keep MIN_SLOT_PRICE for every other slot still to fill, not for the one being bid on
    reserved = max(0, missing - 1) * MIN_SLOT_PRICE
    available = user.credits_available
    return CreditBudget(
        players_owned=owned,
        players_missing=missing,
        credits_available=available,
        reserved_credits=reserved,
        usable_credits_raw=available - reserved,
    )


def role_is_full(role_counts: Dict[str, int], role: str) -> bool:
    return role_counts.get(role, 0) >= ROLE_QUOTAS[role]


def ensure_role_slot(role_counts: Dict[str, int], role: str, user_id: Optional[int] = None) -> None:
    if role_is_full(role_counts, role):
        raise RoleFull(
            f"{role_name(role)} already complete ({role_counts[role]}/{ROLE_QUOTAS[role]})",
            user_id=user_id,
            role=role,
            owned=role_counts[role],
            quota=ROLE_QUOTAS[role],
        )


def check_bid_admission(db: Session, user: User, auction_id: int, amount) -> BidAdmission:
    """Decide whether ``user`` may bid ``amount`` on the auction. Read-only.

    Raises InvalidAmount, NotFoundError, RoleFull or InsufficientCredits. A bid
    of 0 (bluff) only needs a free slot in the player's role.
    """
    amount = require_amount(amount)

    auction = not_found("Auction", auction_id, db.get(Auction, auction_id))
    player = auction.player

    counts = count_roles(db, user.user_id)
    ensure_role_slot(counts, player.role, user.user_id)

    budget = compute_budget(user, counts)
    if amount > 0 and amount > budget.usable_credits_raw:
        if budget.players_missing > 1:
            detail = (
                f"Insufficient credits: {budget.reserved_credits} must stay reserved "
                f"for the {budget.players_missing - 1} remaining players"
            )
        else:
            detail = f"Insufficient credits: {budget.usable_credits} available"
        raise InsufficientCredits(
            detail,
            credits_total=user.credits_total,
            credits_spent=user.credits_spent,
            credits_available=budget.credits_available,
            reserved_credits=budget.reserved_credits,
            usable_credits=budget.usable_credits,
            requested=amount,
        )

    logger.debug(
        "bid admitted user=%s auction=%s amount=%s usable=%s",
        user.user_id, auction_id, amount, budget.usable_credits,
    )
    return BidAdmission(
        auction_id=auction.id,
        user_id=user.user_id,
        amount=amount,
        player_id=player.id,
        player_name=player.name,
        player_role=player.role,
        usable_credits=budget.usable_credits,
        reserved_credits=budget.reserved_credits,
        players_missing=budget.players_missing,
        role_counts=counts,
    )


def roster_status(db: Session, user_id: int) -> dict:
    user = not_found("User", user_id, db.get(User, user_id))
    counts = count_roles(db, user_id)
    budget = compute_budget(user, counts)

    per_role = {}
    for role in ALL_PLAYER_ROLES:
        quota = ROLE_QUOTAS[role]
        owned = counts[role]
        per_role[role] = {
            "name": role_name(role),
            "owned": owned,
            "quota": quota,
            "missing": quota - owned,
            "complete": owned >= quota,
        }

    return {
        "user_id": user.user_id,
        "per_role": per_role,
        "players_owned": budget.players_owned,
        "players_missing": budget.players_missing,
        "credits_total": user.credits_total,
        "credits_spent": user.credits_spent,
        "credits_available": budget.credits_available,
        "reserved_credits": budget.reserved_credits,
        "usable_credits": budget.usable_credits,
        "roster_complete": budget.players_owned == ROSTER_SIZE,
    }


def bid_eligibility(db: Session, user: User, auction_id: int) -> dict:
    # Same numbers as check_bid_admission, reported instead of raised.
    auction = not_found("Auction", auction_id, db.get(Auction, auction_id))
    player = auction.player
    counts = count_roles(db, user.user_id)
    budget = compute_budget(user, counts)
    full = role_is_full(counts, player.role)

    return {
        "auction": {
            "id": auction.id,
            "state": auction.state,
            "deadline": auction.deadline.isoformat(),
            "player_id": player.id,
            "player_name": player.name,
            "role": player.role,
            "role_name": role_name(player.role),
        },
        "can_bid": not full,
        "role_full": full,
        "block_reason": (
            f"{role_name(player.role)} already complete ({counts[player.role]}/{ROLE_QUOTAS[player.role]})"
            if full else None
        ),
        "usable_credits": budget.usable_credits,
        "reserved_credits": budget.reserved_credits,
        "players_owned": budget.players_owned,
        "players_missing": budget.players_missing,
        "role_counts": {role: f"{counts[role]}/{ROLE_QUOTAS[role]}" for role in ALL_PLAYER_ROLES},
    }
