from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from fantasta.core.errors import not_found
from fantasta.crud.crud_bid import ranked_bids
from fantasta.db.session import transaction
from fantasta.models.auction import Auction
from fantasta.models.players import Player
from fantasta.models.roster import RosterEntry
from fantasta.models.user import User
from fantasta.services.auction_state import (
    CloseSummary,
    Tie,
    Winner,
    decide_outcome,
    record_outcome,
    transition_to_closed,
)

logger = logging.getLogger(__name__)


def close_auction(db: Session, auction_id: int) -> CloseSummary:
    """Close one auction and settle it, all in one transaction.

    - no positive bids: closed as NoBids
    - several bidders share the top amount: closed as Tie at that price, nobody
      is charged and the player stays available (an admin resolves it)
    - a single top bidder: roster entry created, credits charged, player taken

    Raises NotFoundError, or AuctionNotActive when the auction was already
    closed (e.g. the sweeper and a manual close raced). On any error nothing is
    written and an active auction stays active.
    """
    with transaction(db):
        auction = not_found("Auction", auction_id, db.get(Auction, auction_id))
        player_id = auction.player_id
        player_name = auction.player.name if auction.player else None

        # after the claim no bid can be added, so the ranking below is final
        transition_to_closed(db, auction_id)

        outcome = decide_outcome(ranked_bids(db, auction_id))
        record_outcome(db, auction_id, outcome)

        if isinstance(outcome, Winner):
            _settle_winner(db, player_id, outcome)

        summary = CloseSummary(
            auction_id=auction_id,
            player_id=player_id,
            outcome=outcome,
            player_name=player_name,
        )

    if isinstance(outcome, Tie):
        logger.warning(
            "auction %s (%s) closed on a tie at %s between users %s: manual assignment required",
            auction_id, player_name, outcome.price, list(outcome.tied_user_ids),
        )
    elif isinstance(outcome, Winner):
        logger.info(
            "auction %s: %s assigned to user %s for %s credits",
            auction_id, player_name, outcome.user_id, outcome.price,
        )
    else:
        logger.info("auction %s (%s) closed without bids", auction_id, player_name)

    return summary


def _settle_winner(db: Session, player_id: int, outcome: Winner) -> None:
    # a concurrent assign of the same player trips uq_roster_player here and rolls back the close
    db.add(RosterEntry(user_id=outcome.user_id, player_id=player_id, price=outcome.price))

    charged = (
        db.query(User)
        .filter(User.user_id == outcome.user_id)
        .update({User.credits_spent: User.credits_spent + outcome.price}, synchronize_session="fetch")
    )
    if charged == 0:
        not_found("User", outcome.user_id, None)

    db.query(Player).filter(Player.id == player_id).update(
        {Player.is_available: False}, synchronize_session="fetch"
    )
    db.flush()
