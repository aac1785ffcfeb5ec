from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fantasta.core.roles import ROLE_ADMIN, ROLE_USER
from fantasta.db.init_db import init_db
from fantasta.models.auction import Auction
from fantasta.models.players import Player
from fantasta.models.roster import RosterEntry
from fantasta.models.user import User

NOW = datetime(2026, 9, 1, 20, 0, 0)


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'fantasta-test.sqlite'}",
        connect_args={"check_same_thread": False},
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(credits_total=500, credits_spent=0, admin=False, username=None):
        counter["n"] += 1
        user = User(
            username=username or f"mister{counter['n']}",
            team_name=f"Team {counter['n']}",
            role=ROLE_ADMIN if admin else ROLE_USER,
            is_admin=admin,
            credits_total=credits_total,
            credits_spent=credits_spent,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_player(db):
    counter = {"n": 0}

    def _make(role="A", name=None, base_value=10):
        counter["n"] += 1
        player = Player(name=name or f"Player {counter['n']}", team_name="Team X", role=role, base_value=base_value)
        db.add(player)
        db.commit()
        db.refresh(player)
        return player

    return _make


@pytest.fixture
def make_auction(db, make_player):
    def _make(player=None, role="A", created_at=NOW, minutes=2):
        if player is None:
            player = make_player(role=role)
        auction = Auction(
            player_id=player.id,
            state="active",
            created_at=created_at,
            deadline=created_at + timedelta(minutes=minutes),
        )
        db.add(auction)
        db.commit()
        db.refresh(auction)
        return auction

    return _make


@pytest.fixture
def give_players(db, make_player):
    """Put ``count`` fresh players of ``role`` in a user's roster, charging ``price`` each."""

    def _give(user, role, count, price=1):
        for _ in range(count):
            player = make_player(role=role)
            player.is_available = False
            db.add(RosterEntry(user_id=user.user_id, player_id=player.id, price=price))
            user.credits_spent += price
        db.commit()
        db.refresh(user)

    return _give
