import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from loyaltyapi.core.security import create_access_token
from loyaltyapi.database.session import get_db
from loyaltyapi.main import create_app
from loyaltyapi.repositories.config_repository import ConfigRepository
from loyaltyapi.services.rate_config_service import POINTS_RATE_KEY


@pytest.fixture
def client(test_settings, session_factory):
    """테스트 클라이언트 픽스처 - 요청마다 테스트 DB 세션"""
    app = create_app(test_settings)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def admin_headers(test_settings):
    token = create_access_token(
        {"type": "admin", "id": "1", "username": "barista", "name": "Kim", "role": "staff"},
        test_settings,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(test_settings):
    def _headers(user_id: int):
        token = create_access_token({"userId": user_id}, test_settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


class TestAuth:
    def test_health_is_public(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    def test_missing_token(self, client):
        response = client.get("/api/v1/points/balance")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_001"

    def test_bad_signature(self, client, make_user, test_settings):
        user_id = make_user()
        forged = test_settings.model_copy(update={"JWT_SECRET_KEY": "other-secret"})
        token = create_access_token({"userId": user_id}, forged)

        response = client.get(
            "/api/v1/points/balance", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    def test_customer_token_cannot_use_admin_routes(self, client, make_user, customer_headers):
        user_id = make_user()

        response = client.get("/api/v1/admin/points-rate", headers=customer_headers(user_id))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTH_002"


class TestPointRoutes:
    """포인트 라우터 테스트"""

    def test_balance_and_ledger(self, client, make_user, customer_headers):
        # Given
        user_id = make_user(points=40)

        # When
        balance = client.get("/api/v1/points/balance", headers=customer_headers(user_id))
        ledger = client.get(
            "/api/v1/points/ledger?limit=10", headers=customer_headers(user_id)
        )

        # Then
        assert balance.status_code == 200
        assert balance.json() == {"user_id": user_id, "balance": 40}
        assert ledger.json()["entries"][0]["change_amount"] == 40
        assert ledger.json()["entries"][0]["action_type"] == "EARN"

    def test_ledger_limit_validation(self, client, make_user, customer_headers):
        user_id = make_user()

        response = client.get(
            "/api/v1/points/ledger?limit=1000", headers=customer_headers(user_id)
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"


class TestAdminRoutes:
    def test_record_purchase_and_summary(self, client, make_user, admin_headers, customer_headers):
        # Given
        user_id = make_user()
        client.put("/api/v1/admin/points-rate", json={"rate": 2}, headers=admin_headers)

        # When
        response = client.post(
            "/api/v1/admin/transactions",
            json={"user_id": user_id, "amount": "12.75"},
            headers=admin_headers,
        )
        summary = client.get("/api/v1/points/summary", headers=customer_headers(user_id))

        # Then
        assert response.status_code == 200
        body = response.json()
        assert body["points_awarded"] == 25
        assert body["rate"] == 2
        assert body["balance_after"] == 25
        assert summary.json()["current_points"] == 25

    def test_purchase_with_negative_amount(self, client, make_user, admin_headers):
        user_id = make_user()

        response = client.post(
            "/api/v1/admin/transactions",
            json={"user_id": user_id, "amount": -5},
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_AMOUNT"

    @pytest.mark.parametrize("amount", ["1e20", "99.999"])
    def test_purchase_amount_out_of_range(self, client, make_user, admin_headers, amount):
        user_id = make_user()

        response = client.post(
            "/api/v1/admin/transactions",
            json={"user_id": user_id, "amount": amount},
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_AMOUNT"

    def test_purchase_for_unknown_user(self, client, admin_headers):
        response = client.post(
            "/api/v1/admin/transactions",
            json={"user_id": 999, "amount": 10},
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "USER_NOT_FOUND"

    def test_points_rate_round_trip(self, client, admin_headers):
        assert client.get("/api/v1/admin/points-rate", headers=admin_headers).json() == {
            "rate": 1,
            "is_default": True,
        }

        updated = client.put(
            "/api/v1/admin/points-rate", json={"rate": 15}, headers=admin_headers
        )
        current = client.get("/api/v1/admin/points-rate", headers=admin_headers)

        assert updated.json() == {"success": True, "rate": 15}
        assert current.json() == {"rate": 15, "is_default": False}

    @pytest.mark.parametrize("rate", [-1, 1001])
    def test_points_rate_out_of_range(self, client, admin_headers, rate):
        response = client.put(
            "/api/v1/admin/points-rate", json={"rate": rate}, headers=admin_headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_RATE"

    def test_points_rate_rejects_fraction(self, client, admin_headers):
        response = client.put(
            "/api/v1/admin/points-rate", json={"rate": 1.5}, headers=admin_headers
        )

        assert response.status_code == 422

    def test_integrity(self, client, make_user, admin_headers):
        user_id = make_user(points=10)

        single = client.get(
            f"/api/v1/admin/points/integrity?user_id={user_id}", headers=admin_headers
        )
        overall = client.get("/api/v1/admin/points/integrity", headers=admin_headers)

        assert single.json()["status"] == "OK"
        assert single.json()["calculated_balance"] == 10
        assert overall.json()["status"] == "OK"


class TestRedemptionRoutes:
    """리워드 교환 라우터 테스트"""

    def test_full_flow(self, client, make_user, make_reward, admin_headers, customer_headers):
        # Given
        user_id = make_user(points=150)
        reward_id = make_reward(points_cost=100)
        headers = customer_headers(user_id)

        # When: 고객 코드 발급
        created = client.post(
            "/api/v1/rewards/redemptions", json={"reward_id": reward_id}, headers=headers
        )
        assert created.status_code == 200
        code = created.json()["code"]
        redemption_id = created.json()["redemption_id"]

        # 직원 대기열 확인
        queue = client.get("/api/v1/admin/redemptions", headers=admin_headers)
        assert [r["code"] for r in queue.json()["redemptions"]] == [code]

        # 직원 코드 확인 → 완료
        verified = client.post(
            "/api/v1/admin/redemptions/verify", json={"code": code}, headers=admin_headers
        )
        assert verified.json()["status"] == "VERIFIED"

        completed = client.put(
            f"/api/v1/admin/redemptions/{redemption_id}/complete", headers=admin_headers
        )

        # Then
        assert completed.status_code == 200
        assert completed.json()["updated_user"]["current_points"] == 50

        status = client.get(f"/api/v1/rewards/redemptions/{code}/status", headers=headers)
        assert status.json()["status"] == "COMPLETED"
        assert status.json()["remaining_points"] == 50

        history = client.get("/api/v1/rewards/redemptions/history", headers=headers)
        assert history.json()["stats"]["total_points_spent"] == 100

    def test_insufficient_points(self, client, make_user, make_reward, customer_headers):
        user_id = make_user(points=50)
        reward_id = make_reward(points_cost=100)

        response = client.post(
            "/api/v1/rewards/redemptions",
            json={"reward_id": reward_id},
            headers=customer_headers(user_id),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INSUFFICIENT_POINTS"
        assert response.json()["error"]["details"] == {
            "user_points": 50,
            "required_points": 100,
        }

    def test_duplicate_pending(self, client, make_user, make_reward, customer_headers):
        user_id = make_user(points=500)
        reward_id = make_reward(points_cost=100)
        headers = customer_headers(user_id)
        client.post("/api/v1/rewards/redemptions", json={"reward_id": reward_id}, headers=headers)

        response = client.post(
            "/api/v1/rewards/redemptions", json={"reward_id": reward_id}, headers=headers
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_PENDING_REQUEST"

    def test_complete_before_verify(self, client, make_user, make_reward, admin_headers, customer_headers):
        user_id = make_user(points=500)
        created = client.post(
            "/api/v1/rewards/redemptions",
            json={"reward_id": make_reward(points_cost=100)},
            headers=customer_headers(user_id),
        ).json()

        response = client.put(
            f"/api/v1/admin/redemptions/{created['redemption_id']}/complete",
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NOT_VERIFIED"

    def test_cancel_then_cancel_again(self, client, make_user, make_reward, admin_headers, customer_headers):
        user_id = make_user(points=500)
        created = client.post(
            "/api/v1/rewards/redemptions",
            json={"reward_id": make_reward(points_cost=100)},
            headers=customer_headers(user_id),
        ).json()
        url = f"/api/v1/admin/redemptions/{created['redemption_id']}"

        first = client.delete(url, headers=admin_headers)
        second = client.delete(url, headers=admin_headers)

        assert first.json()["status"] == "CANCELLED"
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "ALREADY_TERMINAL"

    def test_unknown_code(self, client, admin_headers):
        response = client.post(
            "/api/v1/admin/redemptions/verify", json={"code": "123456"}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CODE_NOT_FOUND"

    def test_queue_status_filter_validation(self, client, admin_headers):
        response = client.get(
            "/api/v1/admin/redemptions?status=SHIPPED", headers=admin_headers
        )

        assert response.status_code == 422


class TestRewardCatalogRoute:
    def test_catalog_with_and_without_login(self, client, make_user, make_reward, customer_headers):
        user_id = make_user(points=120)
        make_reward(points_cost=100, name="Americano")

        anonymous = client.get("/api/v1/rewards")
        logged_in = client.get("/api/v1/rewards", headers=customer_headers(user_id))

        assert anonymous.status_code == 200
        assert anonymous.json()["rewards"][0]["can_afford"] is False
        assert logged_in.json()["user_points"] == 120
        assert logged_in.json()["rewards"][0]["can_afford"] is True


class TestInjectedSettings:
    def test_injected_database_url_is_used(self, tmp_path, test_settings, admin_headers):
        """create_app 에 넘긴 DATABASE_URL 로 엔진과 세션이 만들어짐"""
        db_path = tmp_path / "injected.db"
        settings = test_settings.model_copy(
            update={"DATABASE_URL": f"sqlite:///{db_path}", "AUTO_CREATE_TABLES": True}
        )
        app = create_app(settings)

        with TestClient(app) as client:
            health = client.get("/api/v1/health")
            updated = client.put(
                "/api/v1/admin/points-rate", json={"rate": 7}, headers=admin_headers
            )

        assert health.status_code == 200
        assert updated.json() == {"success": True, "rate": 7}
        assert app.container.database.engine().url.database == str(db_path)

        check_engine = create_engine(f"sqlite:///{db_path}")
        try:
            with sessionmaker(bind=check_engine)() as session:
                assert ConfigRepository(session).get_value(POINTS_RATE_KEY) == "7"
        finally:
            check_engine.dispose()
            app.container.database.engine().dispose()
