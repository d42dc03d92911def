import pytest

from loyaltyapi.core.exceptions import RequestNotFoundError, ValidationError
from loyaltyapi.models.rewards import RedemptionStatusEnum
from loyaltyapi.services.redemption_query_service import (
    RedemptionQueryService,
    parse_status_filter,
)
from loyaltyapi.services.redemption_service import RedemptionService


@pytest.fixture
def redemption_service(db, test_settings):
    return RedemptionService(db, test_settings)


@pytest.fixture
def query_service(db):
    return RedemptionQueryService(db)


@pytest.fixture
def mixed_queue(make_user, make_reward, redemption_service):
    """PENDING 2건, VERIFIED 1건, COMPLETED 1건, CANCELLED 1건"""
    user_id = make_user(points=1000)
    codes = {}
    for name in ("Americano", "Latte", "Mocha", "Tea", "Cake"):
        codes[name] = redemption_service.request_redemption(
            user_id, make_reward(points_cost=100, name=name)
        )

    redemption_service.verify(codes["Mocha"].code)
    redemption_service.verify(codes["Tea"].code)
    redemption_service.complete(codes["Tea"].redemption_id)
    redemption_service.cancel(codes["Cake"].redemption_id)
    return user_id, codes


class TestParseStatusFilter:
    def test_defaults_to_pending(self):
        assert parse_status_filter(None) == RedemptionStatusEnum.PENDING

    def test_all_and_case_insensitive(self):
        assert parse_status_filter("all") is None
        assert parse_status_filter("verified") == RedemptionStatusEnum.VERIFIED

    def test_unknown(self):
        with pytest.raises(ValidationError):
            parse_status_filter("SHIPPED")


class TestListByStatus:
    def test_default_is_pending_newest_first(self, mixed_queue, query_service):
        _, codes = mixed_queue

        result = query_service.list_by_status()

        assert result.total_count == 2
        assert [r.code for r in result.redemptions] == [
            codes["Latte"].code,
            codes["Americano"].code,
        ]
        assert result.redemptions[0].user.current_points == 900
        assert result.redemptions[0].reward.name == "Latte"

    def test_all_and_paging(self, mixed_queue, query_service):
        result = query_service.list_by_status("ALL", limit=2, offset=0)

        assert result.total_count == 5
        assert len(result.redemptions) == 2
        assert result.has_next is True

    def test_each_status(self, mixed_queue, query_service):
        counts = {
            status: query_service.list_by_status(status).total_count
            for status in ("PENDING", "VERIFIED", "COMPLETED", "CANCELLED")
        }
        assert counts == {"PENDING": 2, "VERIFIED": 1, "COMPLETED": 1, "CANCELLED": 1}


class TestCustomerQueries:
    def test_status_of_completed_code(self, mixed_queue, query_service):
        user_id, codes = mixed_queue

        status = query_service.get_by_code(codes["Tea"].code, owner_user_id=user_id)

        assert status.status == "COMPLETED"
        assert status.reward_name == "Tea"
        assert status.points_used == 100
        assert status.remaining_points == 900
        assert status.completed_at is not None

    def test_status_of_pending_code_has_no_remaining(self, mixed_queue, query_service):
        user_id, codes = mixed_queue

        status = query_service.get_by_code(codes["Americano"].code, owner_user_id=user_id)

        assert status.status == "PENDING"
        assert status.remaining_points is None

    def test_other_users_code_is_not_found(self, mixed_queue, make_user, query_service):
        _, codes = mixed_queue
        stranger = make_user()

        with pytest.raises(RequestNotFoundError):
            query_service.get_by_code(codes["Americano"].code, owner_user_id=stranger)

    def test_history_stats(self, mixed_queue, query_service):
        user_id, _ = mixed_queue

        history = query_service.history_for_user(user_id)

        assert history.stats.total_redemptions == 5
        assert history.stats.status_counts == {
            "PENDING": 2,
            "VERIFIED": 1,
            "COMPLETED": 1,
            "CANCELLED": 1,
        }
        assert history.stats.total_points_spent == 100
        assert history.stats.current_points == 900
        assert history.redemptions[0].reward.name == "Cake"
