import random

import pytest

from loyaltyapi.core.exceptions import (
    InsufficientPointsError,
    UserNotFoundError,
    ValidationError,
)
from loyaltyapi.models.points import PointActionType, PointLog
from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.services.point_service import PointService


class TestPointsRepository:
    """원장 리포지토리 - 잔액 변경과 원장 항목의 짝"""

    def test_record_earn_appends_entry(self, db, make_user):
        user_id = make_user()
        repo = PointsRepository(db)

        result = repo.record_earn(user_id, 120)
        db.commit()

        assert result.success
        assert result.entry.change_amount == 120
        assert result.entry.action_type == "EARN"
        assert result.balance_after == 120
        assert repo.get_user_balance(user_id) == 120

    def test_record_redeem_negative_entry(self, db, make_user):
        user_id = make_user(points=150)
        repo = PointsRepository(db)

        result = repo.record_redeem(user_id, 100)
        db.commit()

        assert result.success
        assert result.entry.change_amount == -100
        assert result.entry.action_type == "REDEEM"
        assert result.balance_after == 50

    def test_redeem_exceeding_balance_changes_nothing(self, db, make_user):
        user_id = make_user(points=50)
        repo = PointsRepository(db)

        result = repo.record_redeem(user_id, 100)

        assert not result.success
        assert result.error_code == "INSUFFICIENT_POINTS"
        assert result.balance_after == 50
        assert repo.count({"user_id": user_id}) == 1  # 초기 적립 항목만

    @pytest.mark.parametrize("amount", [0, -5, True, 1.5])
    def test_invalid_amount_rejected(self, db, make_user, amount):
        user_id = make_user(points=10)
        repo = PointsRepository(db)

        assert repo.record_earn(user_id, amount).error_code == "INVALID_AMOUNT"
        assert repo.record_redeem(user_id, amount).error_code == "INVALID_AMOUNT"
        assert repo.get_user_balance(user_id) == 10

    def test_unknown_user(self, db):
        repo = PointsRepository(db)

        assert repo.get_user_balance(9999) is None
        assert repo.record_earn(9999, 10).error_code == "USER_NOT_FOUND"
        assert repo.record_redeem(9999, 10).error_code == "USER_NOT_FOUND"

    def test_ledger_newest_first_with_paging(self, db, make_user):
        user_id = make_user()
        repo = PointsRepository(db)
        for amount in (10, 20, 30):
            repo.record_earn(user_id, amount)
        db.commit()

        ledger = repo.get_user_ledger(user_id, limit=2, offset=0)

        assert ledger.balance == 60
        assert ledger.total_count == 3
        assert ledger.has_next is True
        assert [e.change_amount for e in ledger.entries] == [30, 20]


class TestLedgerInvariant:
    def test_random_sequence_keeps_balance_equal_to_ledger_sum(self, db, make_user):
        """임의의 적립/사용 시퀀스 후에도 잔액 == 원장 합계, 잔액은 음수가 되지 않음"""
        rng = random.Random(20240601)
        user_id = make_user()
        repo = PointsRepository(db)

        for _ in range(200):
            amount = rng.randint(1, 80)
            if rng.random() < 0.5:
                repo.record_earn(user_id, amount)
            else:
                repo.record_redeem(user_id, amount)
            db.commit()

            balance = repo.get_user_balance(user_id)
            assert balance >= 0
            assert balance == repo.sum_changes(user_id)

        integrity = repo.verify_integrity_for_user(user_id)
        assert integrity.status == "OK"

    def test_global_integrity_detects_mismatch(self, db, make_user):
        ok_user = make_user(points=100)
        broken_user = make_user(points=100)
        # 원장 항목만 추가하여 잔액과 어긋나게 만듦
        db.add(PointLog(user_id=broken_user, change_amount=5, action_type=PointActionType.EARN))
        db.commit()

        result = PointsRepository(db).verify_global_integrity()

        assert result.status == "MISMATCH"
        assert result.mismatched_user_ids == [broken_user]
        assert ok_user not in result.mismatched_user_ids
        assert result.user_count == 2


class TestConcurrentRedeem:
    def test_stale_session_cannot_double_spend(self, session_factory, make_user):
        """두 세션이 같은 잔액(150)을 보고 각각 100 차감 - 하나만 성공"""
        user_id = make_user(points=150)
        session_a = session_factory()
        session_b = session_factory()
        try:
            repo_a = PointsRepository(session_a)
            repo_b = PointsRepository(session_b)
            assert repo_a.get_user_balance(user_id) == 150
            assert repo_b.get_user_balance(user_id) == 150

            first = repo_a.record_redeem(user_id, 100)
            session_a.commit()
            second = repo_b.record_redeem(user_id, 100)
            session_b.rollback()

            assert first.success
            assert not second.success
            assert second.error_code == "INSUFFICIENT_POINTS"

            assert repo_a.get_user_balance(user_id) == 50
            assert repo_a.sum_changes(user_id) == 50
        finally:
            session_a.close()
            session_b.close()


class TestPointService:
    def test_redeem_raises_typed_error(self, db, make_user):
        user_id = make_user(points=30)
        service = PointService(db)

        with pytest.raises(InsufficientPointsError) as exc_info:
            service.record_redeem(user_id, 31)

        assert exc_info.value.details == {"user_points": 30, "required_points": 31}
        assert service.get_user_balance(user_id).balance == 30

    def test_earn_for_unknown_user(self, db):
        with pytest.raises(UserNotFoundError):
            PointService(db).record_earn(404, 10)

    def test_earn_invalid_amount(self, db, make_user):
        user_id = make_user()
        with pytest.raises(ValidationError) as exc_info:
            PointService(db).record_earn(user_id, 0)
        assert exc_info.value.error_code == "INVALID_AMOUNT"

    def test_ledger_limit_is_capped(self, db, make_user):
        user_id = make_user(points=10)
        ledger = PointService(db).get_user_ledger(user_id, limit=500)
        assert ledger.total_count == 1
