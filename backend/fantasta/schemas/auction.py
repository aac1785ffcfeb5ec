from typing import Any, Optional

from pydantic import BaseModel


class CreateAuctionRequest(BaseModel):
    player_id: int
    duration_minutes: Optional[int] = None
    reopen_tie: bool = False


class BidRequest(BaseModel):
    # kept loose: the service answers InvalidAmount for negatives, fractions and garbage
    amount: Any = None
