from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fantasta.core.security import require_admin
from fantasta.db.session import get_db
from fantasta.models.user import User
from fantasta.schemas.admin import (
    AssignPlayerRequest,
    CreditsRequest,
    PlayerIdRequest,
    ResolveTieRequest,
    TransferPlayerRequest,
)
from fantasta.services import admin_ops

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.post("/players/assign")
def assign_player(req: AssignPlayerRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"ok": True, **asdict(admin_ops.assign_player(db, req.player_id, req.user_id, req.price))}


@router.post("/players/transfer")
def transfer_player(req: TransferPlayerRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"ok": True, **asdict(admin_ops.transfer_player(db, req.player_id, req.new_user_id, req.new_price))}


@router.post("/players/free")
def free_player(req: PlayerIdRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"ok": True, **asdict(admin_ops.free_player(db, req.player_id))}


@router.post("/auctions/{auction_id}/resolve-tie")
def resolve_tie(auction_id: int, req: ResolveTieRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"ok": True, **asdict(admin_ops.resolve_tie(db, auction_id, req.user_id))}


@router.put("/users/{user_id}/credits")
def set_credits(user_id: int, req: CreditsRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"ok": True, **admin_ops.set_credits_total(db, user_id, req.credits_total)}


@router.delete("/users/{user_id}")
def delete_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    if user_id == admin.user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    return {"ok": True, **asdict(admin_ops.delete_user(db, user_id))}
