from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from fantasta.core.clock import utcnow
from fantasta.db.base import Base


class RosterEntry(Base):
    __tablename__ = "roster_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), index=True, nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), index=True, nullable=False)

    price = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    player = relationship("Player", lazy="joined")

    # a player belongs to at most one roster
    __table_args__ = (UniqueConstraint("player_id", name="uq_roster_player"),)
