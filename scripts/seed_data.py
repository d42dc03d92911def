"""
로컬 개발용 시드 스크립트
기본 리워드 카탈로그와 테스트 고객을 만들고, 개발용 토큰을 출력합니다.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loyaltyapi.config import settings
from loyaltyapi.core.security import create_access_token
from loyaltyapi.database.connection import engine
from loyaltyapi.database.schema import create_tables
from loyaltyapi.database.session import get_db_context
from loyaltyapi.models.rewards import Reward
from loyaltyapi.models.user import User
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.rate_config_service import RateConfigService


DEFAULT_REWARDS = [
    ("아메리카노", "Hot / Iced", 100),
    ("카페라떼", "Hot / Iced", 150),
    ("치즈케이크", None, 250),
    ("텀블러", "Limited edition", 1000),
]

TEST_CUSTOMER_PHONE = "010-0000-0000"
TEST_CUSTOMER_POINTS = 150


def seed_rewards():
    """기본 리워드 카탈로그 시드 (이름이 이미 있으면 건너뜀)"""
    with get_db_context() as db:
        existing = {name for (name,) in db.query(Reward.name).all()}
        created = 0
        for name, description, cost in DEFAULT_REWARDS:
            if name in existing:
                continue
            db.add(Reward(name=name, description=description, points_cost=cost))
            created += 1
    print(f"✅ 리워드 시드 완료: {created}개 추가 ({len(DEFAULT_REWARDS) - created}개 기존)")


def seed_points_rate():
    """적립률이 비어 있으면 기본값으로 저장"""
    with get_db_context(commit=False) as db:
        service = RateConfigService(db, settings)
        current = service.get_rate()
        if current.is_default:
            service.set_rate(settings.DEFAULT_POINTS_RATE)
            print(f"✅ 적립률 저장: {settings.DEFAULT_POINTS_RATE}")
        else:
            print(f"ℹ️  적립률 유지: {current.rate}")


def seed_customer() -> int:
    """테스트 고객 생성 후 원장을 통해 초기 포인트 적립"""
    with get_db_context() as db:
        user = UserRepository(db).get_by_phone_number(TEST_CUSTOMER_PHONE)
        if user is not None:
            print(f"ℹ️  테스트 고객 존재: id={user.id}, points={user.current_points}")
            return user.id

        db.add(User(phone_number=TEST_CUSTOMER_PHONE))
        db.flush()
        user_id = UserRepository(db).get_by_phone_number(TEST_CUSTOMER_PHONE).id

    with get_db_context(commit=False) as db:
        PointService(db).record_earn(user_id, TEST_CUSTOMER_POINTS)

    print(f"✅ 테스트 고객 생성: id={user_id}, points={TEST_CUSTOMER_POINTS}")
    return user_id


if __name__ == "__main__":
    create_tables(engine)
    seed_rewards()
    seed_points_rate()
    customer_id = seed_customer()

    print("\n🔑 개발용 토큰")
    print("customer:", create_access_token({"userId": customer_id}, settings))
    print(
        "admin:   ",
        create_access_token(
            {"type": "admin", "id": "1", "username": "barista", "name": "Barista", "role": "staff"},
            settings,
        ),
    )
