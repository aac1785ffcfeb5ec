# fantasta/crud/crud_bid.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from fantasta.core.clock import utcnow
from fantasta.core.errors import AuctionExpired, AuctionNotActive, not_found
from fantasta.models.auction import Auction, Bid
from fantasta.services.auction_state import AuctionState


def place_bid(
    db: Session,
    auction_id: int,
    user_id: int,
    amount: int,
    now: Optional[datetime] = None,
) -> Bid:
    """Upsert the bidder's single bid on an auction (last write wins).

    Flushes but does not commit: the caller owns the transaction. Callers run
    the admission check first.

    The bid is only written after a conditional UPDATE of the auction row
    (still active, deadline not reached) has matched. That write conflicts with
    the closer's compare-and-set, so a close committed after the checks below
    makes this call raise instead of storing the bid.
    """
    if now is None:
        now = utcnow()

    auction = not_found("Auction", auction_id, db.get(Auction, auction_id))
    if auction.state != AuctionState.ACTIVE.value:
        raise AuctionNotActive(f"Auction {auction_id} is not active", auction_id=auction_id)
    if now >= auction.deadline:
        raise AuctionExpired(
            f"Auction {auction_id} expired at {auction.deadline.isoformat()}",
            auction_id=auction_id,
            deadline=auction.deadline.isoformat(),
        )

    _claim_auction_for_bid(db, auction, now)

    row = (
        db.query(Bid)
        .filter(Bid.auction_id == auction_id, Bid.user_id == user_id)
        .one_or_none()
    )
    if row is None:
        row = Bid(auction_id=auction_id, user_id=user_id)
        db.add(row)

    # no history: the previous amount is simply overwritten
    row.amount = amount
    row.updated_at = now
    db.flush()
    return row


def _claim_auction_for_bid(db: Session, auction: Auction, now: datetime) -> None:
    claimed = (
        db.query(Auction)
        .filter(
            Auction.id == auction.id,
            Auction.state == AuctionState.ACTIVE.value,
            Auction.deadline > now,
        )
        .update({Auction.last_bid_at: now}, synchronize_session=False)
    )
    if claimed == 1:
        return

    # lost against a concurrent close: report what the row says now
    db.refresh(auction)
    if auction.state != AuctionState.ACTIVE.value:
        raise AuctionNotActive(f"Auction {auction.id} is not active", auction_id=auction.id)
    raise AuctionExpired(
        f"Auction {auction.id} expired at {auction.deadline.isoformat()}",
        auction_id=auction.id,
        deadline=auction.deadline.isoformat(),
    )


def ranked_bids(db: Session, auction_id: int) -> List[Bid]:
    # updated_at only makes the listing deterministic; it never breaks a tie
    return (
        db.query(Bid)
        .filter(Bid.auction_id == auction_id, Bid.amount > 0)
        .order_by(Bid.amount.desc(), Bid.updated_at.asc(), Bid.id.asc())
        .all()
    )


def all_bids(db: Session, auction_id: int) -> List[Bid]:
    # includes bluffs (amount 0)
    return (
        db.query(Bid)
        .filter(Bid.auction_id == auction_id)
        .order_by(Bid.amount.desc(), Bid.updated_at.asc(), Bid.id.asc())
        .all()
    )
