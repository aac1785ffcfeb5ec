from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, lazyload

from fantasta.core.clock import utcnow
from fantasta.core.config import settings
from fantasta.core.errors import (
    AuctionAlreadyActiveForPlayer,
    NoAuctionsToDelete,
    PlayerAlreadyOwned,
    TieUnresolved,
    not_found,
    require_amount,
)
from fantasta.crud.crud_bid import all_bids, place_bid, ranked_bids
from fantasta.db.session import transaction
from fantasta.models.auction import Auction, Bid
from fantasta.models.players import Player
from fantasta.models.roster import RosterEntry
from fantasta.models.user import User
from fantasta.services.admission import BidAdmission, check_bid_admission
from fantasta.services.auction_state import AuctionState, is_pending_tie, outcome_from_auction

logger = logging.getLogger(__name__)


def auction_to_dict(auction: Auction) -> dict:
    player = auction.player
    return {
        "id": auction.id,
        "player_id": auction.player_id,
        "player_name": player.name if player else None,
        "team_name": player.team_name if player else None,
        "role": player.role if player else None,
        "base_value": player.base_value if player else None,
        "state": auction.state,
        "deadline": auction.deadline.isoformat(),
        "created_at": auction.created_at.isoformat() if auction.created_at else None,
        "outcome": auction.outcome,
        "winner_id": auction.winner_id,
        "final_price": auction.final_price,
        "tie_resolved": auction.tie_resolved,
        "last_bid_at": auction.last_bid_at.isoformat() if auction.last_bid_at else None,
    }


def create_auction(
    db: Session,
    player_id: int,
    duration_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
    reopen_tie: bool = False,
) -> Auction:
    if duration_minutes is None:
        duration_minutes = settings.DEFAULT_AUCTION_DURATION_MIN
    duration_minutes = require_amount(duration_minutes, positive=True, field="duration_minutes")
    if now is None:
        now = utcnow()

    with transaction(db):
        player = not_found("Player", player_id, db.get(Player, player_id))

        owner = db.query(RosterEntry).filter_by(player_id=player_id).one_or_none()
        if owner is not None:
            raise PlayerAlreadyOwned(
                f"{player.name} already belongs to user {owner.user_id}",
                player_id=player_id,
                owner_id=owner.user_id,
            )

        active = (
            db.query(Auction)
            .filter(Auction.player_id == player_id, Auction.state == AuctionState.ACTIVE.value)
            .first()
        )
        if active is not None:
            raise AuctionAlreadyActiveForPlayer(
                f"Auction {active.id} is already active for {player.name}",
                player_id=player_id,
                auction_id=active.id,
            )

        if not reopen_tie:
            latest = (
                db.query(Auction)
                .filter(Auction.player_id == player_id)
                .order_by(Auction.created_at.desc(), Auction.id.desc())
                .first()
            )
            if latest is not None and is_pending_tie(latest):
                raise TieUnresolved(
                    f"Auction {latest.id} for {player.name} ended in a tie that has not been resolved",
                    player_id=player_id,
                    auction_id=latest.id,
                    price=latest.final_price,
                )

        auction = Auction(
            player_id=player_id,
            state=AuctionState.ACTIVE.value,
            deadline=now + timedelta(minutes=duration_minutes),
            created_at=now,
        )
        db.add(auction)
        db.flush()

    db.refresh(auction)
    logger.info(
        "auction %s opened for %s (%s), %s min, deadline %s",
        auction.id, player.name, player.role, duration_minutes, auction.deadline.isoformat(),
    )
    return auction


def submit_bid(
    db: Session,
    auction_id: int,
    user_id: int,
    amount,
    now: Optional[datetime] = None,
) -> BidAdmission:
    user = not_found("User", user_id, db.get(User, user_id))

    with transaction(db):
        admission = check_bid_admission(db, user, auction_id, amount)
        place_bid(db, auction_id, user_id, admission.amount, now=now)

    logger.info(
        "user %s %s %s on auction %s (%s), usable credits %s",
        user_id,
        "bluffs" if admission.is_bluff else "bids",
        admission.amount,
        auction_id,
        admission.player_name,
        admission.usable_credits,
    )
    return admission


def current_active_auction(db: Session, now: Optional[datetime] = None) -> Optional[Auction]:
    if now is None:
        now = utcnow()
    return (
        db.query(Auction)
        .filter(Auction.state == AuctionState.ACTIVE.value, Auction.deadline > now)
        .order_by(Auction.created_at.asc(), Auction.id.asc())
        .first()
    )


def expired_active_auction_ids(db: Session, now: Optional[datetime] = None) -> List[int]:
    if now is None:
        now = utcnow()
    rows = (
        db.query(Auction.id)
        .filter(Auction.state == AuctionState.ACTIVE.value, Auction.deadline <= now)
        .order_by(Auction.deadline.asc(), Auction.id.asc())
        .all()
    )
    return [r[0] for r in rows]


def list_auctions(db: Session, state: Optional[str] = None, limit: int = 20, offset: int = 0) -> List[dict]:
    q = (
        db.query(
            Auction,
            func.count(Bid.id).label("bid_count"),
            func.max(Bid.amount).label("highest_bid"),
        )
        .outerjoin(Bid, Bid.auction_id == Auction.id)
        .options(lazyload(Auction.player))
    )
    if state:
        q = q.filter(Auction.state == state)

    rows = (
        q.group_by(Auction.id)
        .order_by(Auction.created_at.desc(), Auction.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )

    out = []
    for auction, bid_count, highest in rows:
        item = auction_to_dict(auction)
        item["bid_count"] = int(bid_count or 0)
        item["highest_bid"] = int(highest or 0)
        out.append(item)
    return out


def auction_detail(db: Session, auction_id: int) -> dict:
    auction = not_found("Auction", auction_id, db.get(Auction, auction_id))
    bids = all_bids(db, auction_id)
    outcome = outcome_from_auction(auction, ranked_bids(db, auction_id))

    out = auction_to_dict(auction)
    out["bids"] = [
        {"user_id": b.user_id, "amount": b.amount, "updated_at": b.updated_at.isoformat()}
        for b in bids
    ]
    out["bid_count"] = len(bids)
    out["highest_bid"] = bids[0].amount if bids else 0
    out["tied_user_ids"] = list(getattr(outcome, "tied_user_ids", ()))
    out["pending_tie"] = is_pending_tie(auction)
    return out


def delete_all_auctions(db: Session) -> dict:
    # roster entries and credits are left alone: settled purchases survive
    with transaction(db):
        total = db.query(Auction).count()
        if total == 0:
            raise NoAuctionsToDelete("No auctions to delete", count=0)
        bids_deleted = db.query(Bid).delete(synchronize_session=False)
        db.query(Auction).delete(synchronize_session=False)

    logger.warning("deleted %s auctions and %s bids", total, bids_deleted)
    return {"auctions_deleted": total, "bids_deleted": bids_deleted}


def auction_stats(db: Session, now: Optional[datetime] = None) -> dict:
    if now is None:
        now = utcnow()
    active = Auction.state == AuctionState.ACTIVE.value
    closed = Auction.state == AuctionState.CLOSED.value

    row = db.query(
        func.count(case((active, 1))),
        func.count(case((closed & Auction.winner_id.isnot(None), 1))),
        func.count(case((closed & Auction.winner_id.is_(None), 1))),
        func.count(case((active & (Auction.deadline <= now), 1))),
    ).one()

    return {
        "active": int(row[0] or 0),
        "concluded": int(row[1] or 0),
        "closed_without_winner": int(row[2] or 0),
        "expired_awaiting_close": int(row[3] or 0),
    }
