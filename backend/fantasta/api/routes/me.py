from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fantasta.core.security import get_current_user
from fantasta.db.session import get_db
from fantasta.models.roster import RosterEntry
from fantasta.models.user import User
from fantasta.services.admission import roster_status

router = APIRouter(prefix="/api/v1", tags=["me"])


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {
        "user_id": user.user_id,
        "username": user.username,
        "team_name": user.team_name,
        "role": user.role,
        "credits_total": user.credits_total,
        "credits_spent": user.credits_spent,
    }


@router.get("/me/roster")
def my_roster(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entries = (
        db.query(RosterEntry)
        .filter(RosterEntry.user_id == user.user_id)
        .order_by(RosterEntry.price.desc())
        .all()
    )
    status = roster_status(db, user.user_id)
    status["players"] = [
        {
            "player_id": e.player_id,
            "name": e.player.name,
            "role": e.player.role,
            "team_name": e.player.team_name,
            "price": e.price,
            "acquired_at": e.created_at.isoformat(),
        }
        for e in entries
    ]
    return status


@router.get("/users/{user_id}/roster-status")
def user_roster_status(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return roster_status(db, user_id)
