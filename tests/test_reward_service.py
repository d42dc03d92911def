from types import SimpleNamespace

import pytest
from unittest.mock import Mock, patch

from loyaltyapi.services.reward_service import RewardService


@pytest.fixture
def mock_db():
    return Mock()


@pytest.fixture
def reward_service(mock_db):
    with patch("loyaltyapi.services.reward_service.RewardsRepository") as mock_rewards_class, patch(
        "loyaltyapi.services.reward_service.PointsRepository"
    ) as mock_points_class:
        service = RewardService(mock_db)
        service.rewards_repo = mock_rewards_class.return_value
        service.points_repo = mock_points_class.return_value
        return service


def _reward(id, name, points_cost):
    # Mock(name=...) 는 mock 이름으로 쓰이므로 SimpleNamespace 사용
    return SimpleNamespace(
        id=id,
        name=name,
        description=None,
        image_url=None,
        points_cost=points_cost,
    )


class TestRewardService:
    """RewardService 테스트"""

    def test_catalog_with_user_balance(self, reward_service):
        # Arrange
        reward_service.points_repo.get_user_balance.return_value = 120
        reward_service.rewards_repo.list_active.return_value = [
            _reward(1, "Americano", 100),
            _reward(2, "Cake", 250),
        ]

        # Act
        result = reward_service.get_reward_catalog(user_id=7)

        # Assert
        assert result.user_points == 120
        assert result.total_count == 2
        americano, cake = result.rewards
        assert americano.can_afford is True
        assert americano.points_needed == 0
        assert cake.can_afford is False
        assert cake.points_needed == 130
        reward_service.points_repo.get_user_balance.assert_called_once_with(7)

    def test_anonymous_catalog(self, reward_service):
        # Arrange
        reward_service.rewards_repo.list_active.return_value = [_reward(1, "Americano", 100)]

        # Act
        result = reward_service.get_reward_catalog()

        # Assert
        assert result.user_points == 0
        assert result.rewards[0].can_afford is False
        reward_service.points_repo.get_user_balance.assert_not_called()

    def test_free_reward_affordable_with_zero_points(self, reward_service):
        reward_service.points_repo.get_user_balance.return_value = 0
        reward_service.rewards_repo.list_active.return_value = [_reward(3, "Water", 0)]

        result = reward_service.get_reward_catalog(user_id=1)

        assert result.rewards[0].can_afford is True


class TestRewardCatalogIntegration:
    def test_inactive_rewards_hidden(self, db, make_reward):
        make_reward(points_cost=100, name="Americano")
        make_reward(points_cost=100, name="Retired", is_active=False)

        result = RewardService(db).get_reward_catalog()

        assert [r.name for r in result.rewards] == ["Americano"]
