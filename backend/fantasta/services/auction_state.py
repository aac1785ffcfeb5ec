"""Auction lifecycle: ACTIVE -> CLOSED, and the outcome a closed auction carries.

The outcome is a tagged value (``NoBids`` | ``Winner`` | ``Tie``) persisted in
``Auction.outcome``; it is never inferred from which of ``winner_id`` /
``final_price`` happen to be NULL.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from sqlalchemy.orm import Session

from fantasta.core.errors import AuctionNotActive
from fantasta.models.auction import Auction, Bid


class AuctionState(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


OUTCOME_NO_BIDS = "no_bids"
OUTCOME_WINNER = "winner"
OUTCOME_TIE = "tie"


@dataclass(frozen=True)
class NoBids:
    kind = OUTCOME_NO_BIDS


@dataclass(frozen=True)
class Winner:
    user_id: int
    price: int
    kind = OUTCOME_WINNER


@dataclass(frozen=True)
class Tie:
    price: int
    tied_user_ids: Tuple[int, ...]
    kind = OUTCOME_TIE


ClosedOutcome = Union[NoBids, Winner, Tie]


def decide_outcome(ranked: Sequence[Bid]) -> ClosedOutcome:
    """Outcome for bids already ranked by amount desc (zero bids excluded).

    Equal top amounts are a tie whatever their timestamps.
    """
    if not ranked:
        return NoBids()

    top = ranked[0].amount
    tied = [b.user_id for b in ranked if b.amount == top]
    if len(tied) > 1:
        return Tie(price=top, tied_user_ids=tuple(tied))
    return Winner(user_id=ranked[0].user_id, price=top)


def outcome_from_auction(auction: Auction, ranked: Sequence[Bid] = ()) -> Optional[ClosedOutcome]:
    """Rebuild the outcome of a persisted auction; None while still active.

    Tied bidders are not stored on the auction row, so they are read back from
    ``ranked`` (the auction's positive bids, highest first).
    """
    if auction.state != AuctionState.CLOSED.value:
        return None
    if auction.outcome == OUTCOME_WINNER:
        return Winner(user_id=auction.winner_id, price=auction.final_price)
    if auction.outcome == OUTCOME_TIE:
        tied = tuple(b.user_id for b in ranked if b.amount == auction.final_price)
        return Tie(price=auction.final_price, tied_user_ids=tied)
    return NoBids()


def is_open_for_bids(auction: Auction, now: datetime) -> bool:
    return auction.state == AuctionState.ACTIVE.value and now < auction.deadline


def is_pending_tie(auction: Auction) -> bool:
    # closed on a tie and not yet handed to anyone by an admin
    return (
        auction.state == AuctionState.CLOSED.value
        and auction.outcome == OUTCOME_TIE
        and not auction.tie_resolved
    )


def transition_to_closed(db: Session, auction_id: int) -> None:
    """Compare-and-set ACTIVE -> CLOSED.

    Only writes if the row is still active; otherwise somebody else closed it
    first and AuctionNotActive is raised. Once this has run, a bid write on the
    same auction (guarded in ``place_bid``) can no longer succeed, so the bids
    read afterwards are final. The outcome is written by ``record_outcome`` in
    the same transaction.
    """
    updated = (
        db.query(Auction)
        .filter(Auction.id == auction_id, Auction.state == AuctionState.ACTIVE.value)
        .update({Auction.state: AuctionState.CLOSED.value}, synchronize_session="fetch")
    )
    if updated == 0:
        raise AuctionNotActive(f"Auction {auction_id} is not active", auction_id=auction_id)


def record_outcome(db: Session, auction_id: int, outcome: ClosedOutcome) -> None:
    values = {Auction.outcome: outcome.kind, Auction.tie_resolved: False}
    if isinstance(outcome, Winner):
        values.update({Auction.winner_id: outcome.user_id, Auction.final_price: outcome.price})
    elif isinstance(outcome, Tie):
        values.update({Auction.winner_id: None, Auction.final_price: outcome.price})

    db.query(Auction).filter(Auction.id == auction_id).update(values, synchronize_session="fetch")


@dataclass
class CloseSummary:
    auction_id: int
    player_id: int
    outcome: ClosedOutcome
    player_name: Optional[str] = None

    @property
    def winner_id(self) -> Optional[int]:
        return self.outcome.user_id if isinstance(self.outcome, Winner) else None

    @property
    def price(self) -> int:
        if isinstance(self.outcome, (Winner, Tie)):
            return self.outcome.price
        return 0

    @property
    def tied_user_ids(self) -> List[int]:
        return list(self.outcome.tied_user_ids) if isinstance(self.outcome, Tie) else []

    @property
    def is_tie(self) -> bool:
        return isinstance(self.outcome, Tie)

    def as_dict(self) -> dict:
        return {
            "auction_id": self.auction_id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "outcome": self.outcome.kind,
            "winner_id": self.winner_id,
            "price": self.price,
            "tie": self.is_tie,
            "tied_user_ids": self.tied_user_ids,
        }
