import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from loyaltyapi.config import Settings
from loyaltyapi.database.schema import create_tables
from loyaltyapi.models.rewards import Reward
from loyaltyapi.models.user import User
from loyaltyapi.repositories.points_repository import PointsRepository


@pytest.fixture
def test_settings():
    """테스트용 설정 (.env 무시)"""
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_SECRET_KEY="test-secret",
        DEFAULT_POINTS_RATE=1,
        MAX_POINTS_RATE=1000,
        POINTS_RATE_STRICT=False,
    )


@pytest.fixture
def engine(tmp_path):
    """테스트마다 새 SQLite 파일 DB - 여러 세션이 같은 데이터를 보도록 파일 사용"""
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'loyalty_test.db'}",
        connect_args={"check_same_thread": False},
    )
    create_tables(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    """사용자 생성. 초기 포인트는 원장을 거쳐 적립하여 잔액 = 원장 합계 유지"""
    counter = {"n": 0}

    def _make_user(points: int = 0) -> int:
        counter["n"] += 1
        user = User(phone_number=f"010-1234-{counter['n']:04d}", current_points=0)
        db.add(user)
        db.flush()
        if points > 0:
            result = PointsRepository(db).record_earn(user.id, points)
            assert result.success
        db.commit()
        db.expire(user)
        return user.id

    return _make_user


@pytest.fixture
def make_reward(db):
    def _make_reward(points_cost: int = 100, is_active: bool = True, name: str = "Americano") -> int:
        reward = Reward(name=name, points_cost=points_cost, is_active=is_active)
        db.add(reward)
        db.commit()
        return reward.id

    return _make_reward
