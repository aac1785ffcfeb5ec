from typing import Any

from pydantic import BaseModel


class AssignPlayerRequest(BaseModel):
    player_id: int
    user_id: int
    price: Any = None


class TransferPlayerRequest(BaseModel):
    player_id: int
    new_user_id: int
    new_price: Any = None


class PlayerIdRequest(BaseModel):
    player_id: int


class ResolveTieRequest(BaseModel):
    user_id: int


class CreditsRequest(BaseModel):
    credits_total: Any = None
