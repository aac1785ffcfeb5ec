from fantasta.core.config import settings
from fantasta.core.roles import ROLE_ADMIN, ROLE_USER
from fantasta.db.init_db import init_db
from fantasta.db.session import SessionLocal
from fantasta.models.players import Player
from fantasta.models.user import User


def run():
    init_db()
    db = SessionLocal()
    try:
        # already seeded: do not duplicate
        if db.query(Player).count() > 0:
            print("League already seeded.")
            return

        players = [
            Player(name="Portiere 1", team_name="Team A", role="P", base_value=18),
            Player(name="Portiere 2", team_name="Team B", role="P", base_value=12),
            Player(name="Portiere 3", team_name="Team C", role="P", base_value=6),
            Player(name="Difensore 1", team_name="Team A", role="D", base_value=15),
            Player(name="Difensore 2", team_name="Team B", role="D", base_value=11),
            Player(name="Difensore 3", team_name="Team C", role="D", base_value=9),
            Player(name="Difensore 4", team_name="Team D", role="D", base_value=7),
            Player(name="Centrocampista 1", team_name="Team A", role="C", base_value=30),
            Player(name="Centrocampista 2", team_name="Team B", role="C", base_value=22),
            Player(name="Centrocampista 3", team_name="Team C", role="C", base_value=14),
            Player(name="Centrocampista 4", team_name="Team D", role="C", base_value=8),
            Player(name="Attaccante 1", team_name="Team A", role="A", base_value=45),
            Player(name="Attaccante 2", team_name="Team B", role="A", base_value=33),
            Player(name="Attaccante 3", team_name="Team C", role="A", base_value=20),
            Player(name="Attaccante 4", team_name="Team D", role="A", base_value=10),
        ]
        users = [
            User(username="admin", team_name="Lega", role=ROLE_ADMIN, is_admin=True,
                 credits_total=settings.INITIAL_CREDITS),
            User(username="mister1", team_name="Team Uno", role=ROLE_USER, credits_total=settings.INITIAL_CREDITS),
            User(username="mister2", team_name="Team Due", role=ROLE_USER, credits_total=settings.INITIAL_CREDITS),
        ]

        db.add_all(players + users)
        db.commit()
        print(f"Seed OK: {len(players)} players, {len(users)} users")
    finally:
        db.close()


if __name__ == "__main__":
    run()
