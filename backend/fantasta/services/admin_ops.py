"""Manual roster operations for league admins.

Assign, transfer and free move players and credits outside the auction flow.
Each runs as a single transaction and keeps the same guarantees the auction
closer does: one roster entry per player, ``0 <= credits_spent <= credits_total``,
role quotas respected, ``is_available`` mirroring roster membership.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from fantasta.core.clock import utcnow
from fantasta.core.errors import (
    CreditsBelowSpent,
    InsufficientCredits,
    NoPendingTie,
    NotTiedBidder,
    PlayerAlreadyOwned,
    PlayerNotOwned,
    not_found,
    require_amount,
)
from fantasta.crud.crud_bid import ranked_bids
from fantasta.db.session import transaction
from fantasta.models.auction import Auction, Bid
from fantasta.models.players import Player
from fantasta.models.roster import RosterEntry
from fantasta.models.user import User
from fantasta.services.admission import count_roles, ensure_role_slot
from fantasta.services.auction_state import OUTCOME_TIE, AuctionState, is_pending_tie, outcome_from_auction

logger = logging.getLogger(__name__)


@dataclass
class Assignment:
    player_id: int
    user_id: int
    price: int

    @property
    def credits_delta(self) -> int:
        return self.price


@dataclass
class Transfer:
    player_id: int
    from_user_id: int
    to_user_id: int
    old_price: int
    new_price: int


@dataclass
class Release:
    player_id: int
    user_id: int
    refunded: int


@dataclass
class UserDeletion:
    user_id: int
    username: str
    released: List[Release]
    bids_deleted: int


def _entry_for_player(db: Session, player_id: int) -> Optional[RosterEntry]:
    return db.query(RosterEntry).filter_by(player_id=player_id).one_or_none()


def _require_credits(user: User, price: int, refund: int = 0) -> None:
    available = user.credits_available + refund
    if available < price:
        raise InsufficientCredits(
            f"{user.username} does not have enough credits: {available} available, {price} required",
            user_id=user.user_id,
            credits_available=available,
            requested=price,
        )


def _add_spent(db: Session, user_id: int, delta: int) -> None:
    db.query(User).filter(User.user_id == user_id).update(
        {User.credits_spent: User.credits_spent + delta}, synchronize_session="fetch"
    )


def _release_entry(db: Session, entry: RosterEntry) -> Release:
    # shared by free_player and delete_user; caller owns the transaction
    release = Release(player_id=entry.player_id, user_id=entry.user_id, refunded=entry.price)
    db.delete(entry)
    _add_spent(db, entry.user_id, -entry.price)
    db.query(Player).filter(Player.id == entry.player_id).update(
        {Player.is_available: True}, synchronize_session="fetch"
    )
    return release


def _assign(db: Session, player: Player, user: User, price: int) -> Assignment:
    owner = _entry_for_player(db, player.id)
    if owner is not None:
        raise PlayerAlreadyOwned(
            f"{player.name} already belongs to user {owner.user_id}",
            player_id=player.id,
            owner_id=owner.user_id,
        )

    ensure_role_slot(count_roles(db, user.user_id), player.role, user.user_id)
    _require_credits(user, price)

    db.add(RosterEntry(user_id=user.user_id, player_id=player.id, price=price))
    _add_spent(db, user.user_id, price)
    player.is_available = False
    _mark_ties_resolved(db, player.id)
    db.flush()
    return Assignment(player_id=player.id, user_id=user.user_id, price=price)


def _mark_ties_resolved(db: Session, player_id: int) -> None:
    # an admin handing out a tied player settles the tie, whichever path they use
    resolved = (
        db.query(Auction)
        .filter(
            Auction.player_id == player_id,
            Auction.state == AuctionState.CLOSED.value,
            Auction.outcome == OUTCOME_TIE,
            Auction.tie_resolved.is_(False),
        )
        .update({Auction.tie_resolved: True}, synchronize_session="fetch")
    )
    if resolved:
        logger.info("marked %s tied auction(s) of player %s as resolved", resolved, player_id)


def assign_player(db: Session, player_id: int, user_id: int, price) -> Assignment:
    price = require_amount(price, positive=True, field="price")

    with transaction(db):
        player = not_found("Player", player_id, db.get(Player, player_id))
        user = not_found("User", user_id, db.get(User, user_id))
        result = _assign(db, player, user, price)

    logger.info("admin assigned player %s to user %s for %s credits", player_id, user_id, price)
    return result


def transfer_player(db: Session, player_id: int, new_user_id: int, new_price) -> Transfer:
    new_price = require_amount(new_price, positive=True, field="new_price")

    with transaction(db):
        player = not_found("Player", player_id, db.get(Player, player_id))
        entry = _entry_for_player(db, player_id)
        if entry is None:
            raise PlayerNotOwned(f"{player.name} is not in any roster", player_id=player_id)
        new_user = not_found("User", new_user_id, db.get(User, new_user_id))

        old_user_id = entry.user_id
        old_price = entry.price
        same_owner = old_user_id == new_user_id

        if not same_owner:
            ensure_role_slot(count_roles(db, new_user_id), player.role, new_user_id)
        _require_credits(new_user, new_price, refund=old_price if same_owner else 0)

        entry.user_id = new_user_id
        entry.price = new_price
        entry.created_at = utcnow()
        db.flush()

        # refund first so a same-owner reprice never crosses credits_total in between
        _add_spent(db, old_user_id, -old_price)
        _add_spent(db, new_user_id, new_price)

    logger.info(
        "admin transferred player %s from user %s to user %s (%s -> %s credits)",
        player_id, old_user_id, new_user_id, old_price, new_price,
    )
    return Transfer(
        player_id=player_id,
        from_user_id=old_user_id,
        to_user_id=new_user_id,
        old_price=old_price,
        new_price=new_price,
    )


def free_player(db: Session, player_id: int) -> Release:
    with transaction(db):
        player = not_found("Player", player_id, db.get(Player, player_id))
        entry = _entry_for_player(db, player_id)
        if entry is None:
            raise PlayerNotOwned(f"{player.name} is not in any roster", player_id=player_id)
        result = _release_entry(db, entry)

    logger.info("admin freed player %s from user %s (refunded %s)", player_id, result.user_id, result.refunded)
    return result


def delete_user(db: Session, user_id: int) -> UserDeletion:
    """Remove a user, first putting every player they own back on the market."""
    with transaction(db):
        user = not_found("User", user_id, db.get(User, user_id))
        username = user.username

        entries = db.query(RosterEntry).filter_by(user_id=user_id).all()
        released = [_release_entry(db, e) for e in entries]

        # bids go with the user; closed auctions keep winner_id as history
        bids_deleted = db.query(Bid).filter(Bid.user_id == user_id).delete(synchronize_session=False)
        db.flush()
        db.delete(user)

    logger.info("deleted user %s (%s), released %s players", user_id, username, len(released))
    return UserDeletion(user_id=user_id, username=username, released=released, bids_deleted=bids_deleted)


def resolve_tie(db: Session, auction_id: int, user_id: int) -> Assignment:
    """Hand the player of a tied auction to one of the tied bidders at the tie price."""
    with transaction(db):
        auction = not_found("Auction", auction_id, db.get(Auction, auction_id))
        if not is_pending_tie(auction):
            raise NoPendingTie(f"Auction {auction_id} has no unresolved tie", auction_id=auction_id)

        outcome = outcome_from_auction(auction, ranked_bids(db, auction_id))
        if user_id not in outcome.tied_user_ids:
            raise NotTiedBidder(
                f"User {user_id} is not among the tied bidders of auction {auction_id}",
                auction_id=auction_id,
                tied_user_ids=list(outcome.tied_user_ids),
            )

        user = not_found("User", user_id, db.get(User, user_id))
        result = _assign(db, auction.player, user, outcome.price)
        auction.winner_id = user_id

    logger.info("tie on auction %s resolved in favour of user %s at %s", auction_id, user_id, result.price)
    return result


def set_credits_total(db: Session, user_id: int, credits_total) -> dict:
    credits_total = require_amount(credits_total, field="credits_total")

    with transaction(db):
        user = not_found("User", user_id, db.get(User, user_id))
        if credits_total < user.credits_spent:
            raise CreditsBelowSpent(
                "New credits must cover what has already been spent",
                credits_spent=user.credits_spent,
                credits_total=credits_total,
            )
        previous = user.credits_total
        user.credits_total = credits_total

    logger.info("credits of user %s changed %s -> %s", user_id, previous, credits_total)
    return {"user_id": user_id, "previous_credits_total": previous, "credits_total": credits_total}
