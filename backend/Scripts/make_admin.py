import argparse

from fantasta.core.roles import ROLE_ADMIN
from fantasta.db.session import SessionLocal
from fantasta.models.user import User


def main():
    ap = argparse.ArgumentParser(description="Promote a user to league admin")
    ap.add_argument("username")
    args = ap.parse_args()

    db = SessionLocal()
    try:
        u = db.query(User).filter_by(username=args.username).first()
        if not u:
            print("User not found")
            return
        u.role = ROLE_ADMIN
        u.is_admin = True
        db.commit()
        print(f"OK: {u.username} is admin")
    finally:
        db.close()


if __name__ == "__main__":
    main()
