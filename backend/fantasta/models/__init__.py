# Imported here so SQLAlchemy sees every model before creating tables
from fantasta.models.user import User  # noqa: F401
from fantasta.models.players import Player  # noqa: F401
from fantasta.models.roster import RosterEntry  # noqa: F401
from fantasta.models.auction import Auction, Bid  # noqa: F401
