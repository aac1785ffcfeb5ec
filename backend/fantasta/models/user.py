from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String

from fantasta.core.clock import utcnow
from fantasta.db.base import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    team_name = Column(String, nullable=False, default="")

    role = Column(String, nullable=False, default="user")
    is_admin = Column(Boolean, default=False, nullable=False)

    # fixed allotment; credits_spent only moves through settlement and admin overrides
    credits_total = Column(Integer, nullable=False, default=0)
    credits_spent = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "credits_spent >= 0 AND credits_spent <= credits_total",
            name="ck_users_credits_spent_within_total",
        ),
    )

    @property
    def credits_available(self) -> int:
        return int(self.credits_total or 0) - int(self.credits_spent or 0)
