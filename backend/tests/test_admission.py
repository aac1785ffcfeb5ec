"""
Tests for bid admission: amount validation, role quotas and the credit reserve.
"""

import pytest

from fantasta.core.errors import InsufficientCredits, InvalidAmount, NotFoundError, RoleFull
from fantasta.services.admission import bid_eligibility, check_bid_admission, roster_status


class TestAmountValidation:
    @pytest.mark.parametrize("amount", [-1, 1.5, "10", None, True])
    def test_rejects_malformed_amounts(self, db, make_user, make_auction, amount):
        user = make_user()
        auction = make_auction()
        with pytest.raises(InvalidAmount):
            check_bid_admission(db, user, auction.id, amount)

    def test_unknown_auction(self, db, make_user):
        with pytest.raises(NotFoundError):
            check_bid_admission(db, make_user(), 9999, 5)


class TestCreditReserve:
    def test_empty_roster_reserves_one_credit_per_other_slot(self, db, make_user, make_auction):
        user = make_user(credits_total=500)
        auction = make_auction()

        admission = check_bid_admission(db, user, auction.id, 476)

        assert admission.reserved_credits == 24
        assert admission.usable_credits == 476
        assert admission.players_missing == 25

    def test_bid_above_usable_credits_is_refused(self, db, make_user, make_auction):
        user = make_user(credits_total=500)
        auction = make_auction()

        with pytest.raises(InsufficientCredits) as exc:
            check_bid_admission(db, user, auction.id, 477)

        assert exc.value.extra["usable_credits"] == 476
        assert exc.value.extra["reserved_credits"] == 24

    def test_reserve_shrinks_as_roster_fills(self, db, make_user, make_auction, give_players):
        user = make_user(credits_total=500)
        give_players(user, "D", 8, price=10)  # spent 80, 17 missing
        auction = make_auction(role="A")

        admission = check_bid_admission(db, user, auction.id, 404)

        assert admission.reserved_credits == 16
        assert admission.usable_credits == 500 - 80 - 16

    def test_last_slot_keeps_nothing_in_reserve(self, db, make_user, make_auction, give_players):
        user = make_user(credits_total=100)
        give_players(user, "P", 3)
        give_players(user, "D", 8)
        give_players(user, "C", 8)
        give_players(user, "A", 5)  # 24 owned, spent 24
        auction = make_auction(role="A")

        admission = check_bid_admission(db, user, auction.id, 76)

        assert admission.reserved_credits == 0
        assert admission.usable_credits == 76


class TestBluffBids:
    def test_zero_bid_ignores_credits(self, db, make_user, make_auction):
        broke = make_user(credits_total=50, credits_spent=50)
        auction = make_auction()

        admission = check_bid_admission(db, broke, auction.id, 0)

        assert admission.is_bluff
        assert admission.usable_credits == 0

    def test_zero_bid_still_needs_a_free_role_slot(self, db, make_user, make_auction, give_players):
        user = make_user()
        give_players(user, "P", 3)
        auction = make_auction(role="P")

        with pytest.raises(RoleFull):
            check_bid_admission(db, user, auction.id, 0)


class TestRoleQuota:
    @pytest.mark.parametrize("role,quota", [("P", 3), ("D", 8), ("C", 8), ("A", 6)])
    def test_full_role_is_refused(self, db, make_user, make_auction, give_players, role, quota):
        user = make_user()
        give_players(user, role, quota)
        auction = make_auction(role=role)

        with pytest.raises(RoleFull) as exc:
            check_bid_admission(db, user, auction.id, 1)

        assert exc.value.extra["quota"] == quota

    def test_other_roles_stay_open(self, db, make_user, make_auction, give_players):
        user = make_user()
        give_players(user, "P", 3)
        auction = make_auction(role="D")

        assert check_bid_admission(db, user, auction.id, 1).role_counts["P"] == 3


class TestRosterStatus:
    def test_reports_per_role_counts(self, db, make_user, give_players):
        user = make_user(credits_total=500)
        give_players(user, "P", 2, price=5)
        give_players(user, "A", 1, price=40)

        status = roster_status(db, user.user_id)

        assert status["per_role"]["P"] == {
            "name": "Goalkeepers", "owned": 2, "quota": 3, "missing": 1, "complete": False,
        }
        assert status["per_role"]["A"]["owned"] == 1
        assert status["players_missing"] == 22
        assert status["reserved_credits"] == 21
        assert status["usable_credits"] == 500 - 50 - 21
        assert status["roster_complete"] is False

    def test_complete_roster(self, db, make_user, give_players):
        user = make_user(credits_total=100)
        for role, quota in (("P", 3), ("D", 8), ("C", 8), ("A", 6)):
            give_players(user, role, quota)

        status = roster_status(db, user.user_id)

        assert status["roster_complete"] is True
        assert status["reserved_credits"] == 0

    def test_eligibility_reports_instead_of_raising(self, db, make_user, make_auction, give_players):
        user = make_user()
        give_players(user, "C", 8)
        auction = make_auction(role="C")

        info = bid_eligibility(db, user, auction.id)

        assert info["can_bid"] is False
        assert info["role_full"] is True
        assert "Midfielders" in info["block_reason"]
        assert info["role_counts"]["C"] == "8/8"
