from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import relationship

from fantasta.core.clock import utcnow
from fantasta.db.base import Base


class Auction(Base):
    __tablename__ = "auctions"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, ForeignKey("players.id"), index=True, nullable=False)

    state = Column(String, nullable=False, default="active")  # "active" | "closed"
    deadline = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    # bumped by every accepted bid, through a write guarded on state and deadline
    last_bid_at = Column(DateTime, nullable=True)

    # set once on close; outcome is "no_bids" | "winner" | "tie"
    outcome = Column(String, nullable=True)
    # plain id, not a foreign key: the result outlives the user
    winner_id = Column(Integer, nullable=True, index=True)
    final_price = Column(Integer, nullable=True)
    # a tie stays pending until an admin hands the player to someone
    tie_resolved = Column(Boolean, nullable=False, default=False)

    player = relationship("Player", lazy="joined")

    __table_args__ = (
        # at most one active auction per player
        Index(
            "uq_auctions_active_player",
            "player_id",
            unique=True,
            sqlite_where=text("state = 'active'"),
            postgresql_where=text("state = 'active'"),
        ),
    )


class Bid(Base):
    __tablename__ = "bids"

    id = Column(Integer, primary_key=True, index=True)
    auction_id = Column(Integer, ForeignKey("auctions.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id"), index=True, nullable=False)

    amount = Column(Integer, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    # one live bid per bidder per auction; later bids overwrite
    __table_args__ = (UniqueConstraint("auction_id", "user_id", name="uq_bid_auction_user"),)
