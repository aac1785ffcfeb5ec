"""
Tests for admin overrides: assign, transfer, free, tie resolution, user
deletion and credit changes. Each keeps the same roster and credit guarantees as settlement.
"""

import pytest

from conftest import NOW
from fantasta.core.errors import (
    CreditsBelowSpent,
    InsufficientCredits,
    InvalidAmount,
    NoPendingTie,
    NotFoundError,
    NotTiedBidder,
    PlayerAlreadyOwned,
    PlayerNotOwned,
    RoleFull,
    TieUnresolved,
)
from fantasta.models.auction import Auction, Bid
from fantasta.models.players import Player
from fantasta.models.roster import RosterEntry
from fantasta.models.user import User
from fantasta.services import admin_ops
from fantasta.services.auction_state import Winner, outcome_from_auction
from fantasta.services.auctions import auction_stats, create_auction, submit_bid
from fantasta.services.closer import close_auction


def _spent(db, user):
    db.expire_all()
    return db.get(User, user.user_id).credits_spent


class TestAssign:
    def test_assign_charges_and_takes_player(self, db, make_user, make_player):
        user = make_user(credits_total=200)
        player = make_player(role="C")

        result = admin_ops.assign_player(db, player.id, user.user_id, 35)

        assert (result.player_id, result.user_id, result.price) == (player.id, user.user_id, 35)
        assert _spent(db, user) == 35
        assert db.get(Player, player.id).is_available is False
        assert db.query(RosterEntry).filter_by(player_id=player.id).one().price == 35

    @pytest.mark.parametrize("price", [0, -3, "12", None])
    def test_price_must_be_positive_int(self, db, make_user, make_player, price):
        with pytest.raises(InvalidAmount):
            admin_ops.assign_player(db, make_player().id, make_user().user_id, price)

    def test_owned_player(self, db, make_user, make_player):
        a, b = make_user(), make_user()
        player = make_player()
        admin_ops.assign_player(db, player.id, a.user_id, 10)

        with pytest.raises(PlayerAlreadyOwned):
            admin_ops.assign_player(db, player.id, b.user_id, 10)
        assert _spent(db, b) == 0

    def test_not_enough_credits(self, db, make_user, make_player):
        user = make_user(credits_total=50, credits_spent=20)
        player = make_player()

        with pytest.raises(InsufficientCredits):
            admin_ops.assign_player(db, player.id, user.user_id, 31)
        assert db.query(RosterEntry).count() == 0
        assert db.get(Player, player.id).is_available is True

    def test_exact_remaining_credits_are_enough(self, db, make_user, make_player):
        user = make_user(credits_total=50, credits_spent=20)
        admin_ops.assign_player(db, make_player().id, user.user_id, 30)
        assert _spent(db, user) == 50

    def test_role_quota(self, db, make_user, make_player, give_players):
        user = make_user()
        give_players(user, "P", 3)

        with pytest.raises(RoleFull):
            admin_ops.assign_player(db, make_player(role="P").id, user.user_id, 1)

    def test_unknown_user(self, db, make_player):
        with pytest.raises(NotFoundError):
            admin_ops.assign_player(db, make_player().id, 777, 5)


class TestTransfer:
    def test_moves_ownership_and_credits(self, db, make_user, make_player):
        owner_a, owner_b = make_user(), make_user()
        player = make_player()
        admin_ops.assign_player(db, player.id, owner_a.user_id, 50)

        result = admin_ops.transfer_player(db, player.id, owner_b.user_id, 80)

        assert (result.from_user_id, result.to_user_id) == (owner_a.user_id, owner_b.user_id)
        assert (result.old_price, result.new_price) == (50, 80)
        assert _spent(db, owner_a) == 0
        assert _spent(db, owner_b) == 80
        entries = db.query(RosterEntry).filter_by(player_id=player.id).all()
        assert len(entries) == 1
        assert (entries[0].user_id, entries[0].price) == (owner_b.user_id, 80)
        assert db.get(Player, player.id).is_available is False

    def test_unowned_player(self, db, make_user, make_player):
        with pytest.raises(PlayerNotOwned):
            admin_ops.transfer_player(db, make_player().id, make_user().user_id, 10)

    def test_new_owner_cannot_afford(self, db, make_user, make_player):
        owner_a = make_user()
        owner_b = make_user(credits_total=30)
        player = make_player()
        admin_ops.assign_player(db, player.id, owner_a.user_id, 50)

        with pytest.raises(InsufficientCredits):
            admin_ops.transfer_player(db, player.id, owner_b.user_id, 31)

        assert _spent(db, owner_a) == 50
        assert _spent(db, owner_b) == 0
        assert db.query(RosterEntry).one().user_id == owner_a.user_id

    def test_reprice_for_same_owner_counts_the_refund(self, db, make_user, make_player):
        owner = make_user(credits_total=100)
        player = make_player()
        admin_ops.assign_player(db, player.id, owner.user_id, 90)

        admin_ops.transfer_player(db, player.id, owner.user_id, 100)

        assert _spent(db, owner) == 100
        assert db.query(RosterEntry).one().price == 100


class TestFree:
    def test_free_refunds_and_releases(self, db, make_user, make_player):
        owner = make_user()
        player = make_player()
        admin_ops.assign_player(db, player.id, owner.user_id, 50)

        result = admin_ops.free_player(db, player.id)

        assert (result.user_id, result.refunded) == (owner.user_id, 50)
        assert _spent(db, owner) == 0
        assert db.get(Player, player.id).is_available is True
        assert db.query(RosterEntry).count() == 0

    def test_free_unowned(self, db, make_player):
        with pytest.raises(PlayerNotOwned):
            admin_ops.free_player(db, make_player().id)


class TestDeleteUser:
    def test_releases_every_player_first(self, db, make_user, make_player, make_auction):
        leaving, staying = make_user(), make_user()
        p1, p2 = make_player(role="D"), make_player(role="A")
        admin_ops.assign_player(db, p1.id, leaving.user_id, 20)
        admin_ops.assign_player(db, p2.id, leaving.user_id, 30)
        auction = make_auction()
        submit_bid(db, auction.id, leaving.user_id, 5, now=NOW)
        submit_bid(db, auction.id, staying.user_id, 3, now=NOW)

        result = admin_ops.delete_user(db, leaving.user_id)

        assert sorted(r.refunded for r in result.released) == [20, 30]
        assert result.bids_deleted == 1
        db.expire_all()
        assert db.get(User, leaving.user_id) is None
        assert db.query(RosterEntry).count() == 0
        assert db.get(Player, p1.id).is_available is True
        assert db.get(Player, p2.id).is_available is True
        assert [b.user_id for b in db.query(Bid).all()] == [staying.user_id]

    def test_closed_auction_keeps_its_winner(self, db, make_user, make_auction):
        winner = make_user()
        auction = make_auction()
        submit_bid(db, auction.id, winner.user_id, 10, now=NOW)
        close_auction(db, auction.id)

        admin_ops.delete_user(db, winner.user_id)

        db.expire_all()
        closed = db.get(Auction, auction.id)
        assert outcome_from_auction(closed) == Winner(user_id=winner.user_id, price=10)
        assert db.get(Player, closed.player_id).is_available is True
        stats = auction_stats(db, now=NOW)
        assert (stats["concluded"], stats["closed_without_winner"]) == (1, 0)


class TestResolveTie:
    @pytest.fixture
    def tied_auction(self, db, make_user, make_auction):
        a, b, c = make_user(), make_user(), make_user()
        auction = make_auction()
        submit_bid(db, auction.id, a.user_id, 70, now=NOW)
        submit_bid(db, auction.id, b.user_id, 70, now=NOW)
        submit_bid(db, auction.id, c.user_id, 20, now=NOW)
        close_auction(db, auction.id)
        return auction, a, b, c

    def test_assigns_at_tie_price(self, db, tied_auction):
        auction, a, b, _ = tied_auction

        result = admin_ops.resolve_tie(db, auction.id, b.user_id)

        assert (result.user_id, result.price) == (b.user_id, 70)
        assert _spent(db, b) == 70
        assert _spent(db, a) == 0
        assert db.get(Auction, auction.id).winner_id == b.user_id

        with pytest.raises(NoPendingTie):
            admin_ops.resolve_tie(db, auction.id, a.user_id)

    def test_only_tied_bidders(self, db, tied_auction):
        auction, _, _, outsider = tied_auction

        with pytest.raises(NotTiedBidder):
            admin_ops.resolve_tie(db, auction.id, outsider.user_id)

    def test_pending_tie_blocks_a_new_auction(self, db, tied_auction):
        auction, *_ = tied_auction

        with pytest.raises(TieUnresolved):
            create_auction(db, auction.player_id, 2, now=NOW)

        reopened = create_auction(db, auction.player_id, 2, now=NOW, reopen_tie=True)
        assert reopened.state == "active"

    def test_resolution_survives_deleting_the_winner(self, db, tied_auction):
        auction, _, b, _ = tied_auction
        admin_ops.resolve_tie(db, auction.id, b.user_id)

        admin_ops.delete_user(db, b.user_id)

        db.expire_all()
        closed = db.get(Auction, auction.id)
        assert closed.tie_resolved is True
        assert closed.winner_id == b.user_id
        with pytest.raises(NoPendingTie):
            admin_ops.resolve_tie(db, auction.id, b.user_id)
        assert create_auction(db, auction.player_id, 2, now=NOW).state == "active"

    def test_assigning_the_player_resolves_the_tie(self, db, tied_auction, make_user):
        auction, *_ = tied_auction
        outsider = make_user()

        admin_ops.assign_player(db, auction.player_id, outsider.user_id, 40)

        db.expire_all()
        assert db.get(Auction, auction.id).tie_resolved is True
        with pytest.raises(NoPendingTie):
            admin_ops.resolve_tie(db, auction.id, outsider.user_id)

        admin_ops.free_player(db, auction.player_id)
        assert create_auction(db, auction.player_id, 2, now=NOW).state == "active"


class TestCredits:
    def test_cannot_drop_below_spent(self, db, make_user):
        user = make_user(credits_total=100, credits_spent=60)

        with pytest.raises(CreditsBelowSpent):
            admin_ops.set_credits_total(db, user.user_id, 59)

        assert admin_ops.set_credits_total(db, user.user_id, 60)["credits_total"] == 60
