from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fantasta.core.security import get_current_user, require_admin
from fantasta.db.session import get_db
from fantasta.models.user import User
from fantasta.schemas.auction import BidRequest, CreateAuctionRequest
from fantasta.services import auctions as auction_service
from fantasta.services.admission import bid_eligibility
from fantasta.services.closer import close_auction

router = APIRouter(prefix="/api/v1/auctions", tags=["auctions"])


@router.get("")
def list_auctions(
    state: Optional[str] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return {
        "auctions": auction_service.list_auctions(db, state=state, limit=limit, offset=offset),
        "pagination": {"limit": limit, "offset": offset},
    }


@router.get("/current")
def current_auction(db: Session = Depends(get_db)):
    auction = auction_service.current_active_auction(db)
    if auction is None:
        return {"auction": None}
    return {"auction": auction_service.auction_to_dict(auction)}


@router.get("/stats")
def auction_stats(db: Session = Depends(get_db)):
    return auction_service.auction_stats(db)


@router.get("/{auction_id}")
def auction_detail(auction_id: int, db: Session = Depends(get_db)):
    return auction_service.auction_detail(db, auction_id)


@router.get("/{auction_id}/eligibility")
def eligibility(auction_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return bid_eligibility(db, user, auction_id)


@router.post("", status_code=201)
def create_auction(req: CreateAuctionRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    auction = auction_service.create_auction(
        db,
        req.player_id,
        duration_minutes=req.duration_minutes,
        reopen_tie=req.reopen_tie,
    )
    return {"ok": True, "auction": auction_service.auction_to_dict(auction)}


@router.post("/{auction_id}/bid")
def place_bid(auction_id: int, req: BidRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    admission = auction_service.submit_bid(db, auction_id, user.user_id, req.amount)
    return {"ok": True, **admission.as_dict()}


@router.post("/{auction_id}/close")
def close(auction_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return close_auction(db, auction_id).as_dict()


@router.delete("")
def delete_all(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"ok": True, **auction_service.delete_all_auctions(db)}
