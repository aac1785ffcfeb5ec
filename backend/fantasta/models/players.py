from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, String

from fantasta.db.base import Base


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False, index=True)
    team_name = Column(String, nullable=True)

    # P / D / C / A, see core.game_config
    role = Column(String, nullable=False)

    # False while the player sits in someone's roster
    is_available = Column(Boolean, nullable=False, default=True)

    # Listing quotation, informational only (never enforced as a minimum bid)
    base_value = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("role IN ('P', 'D', 'C', 'A')", name="ck_players_role"),
        Index("ix_players_role_name", "role", "name"),
    )
