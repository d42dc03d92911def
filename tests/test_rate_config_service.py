import pytest

from loyaltyapi.core.exceptions import InvalidRateError, RateConfigInvalidError
from loyaltyapi.repositories.config_repository import ConfigRepository
from loyaltyapi.services.rate_config_service import POINTS_RATE_KEY, RateConfigService


@pytest.fixture
def rate_service(db, test_settings):
    return RateConfigService(db, test_settings)


class TestRateConfigService:
    def test_unset_rate_uses_default(self, rate_service):
        rate = rate_service.get_rate()

        assert rate.rate == 1
        assert rate.is_default is True

    def test_set_then_get(self, rate_service):
        rate_service.set_rate(25)

        rate = rate_service.get_rate()
        assert rate.rate == 25
        assert rate.is_default is False

    def test_set_is_visible_to_other_sessions(self, session_factory, test_settings):
        writer = session_factory()
        reader = session_factory()
        try:
            reader_service = RateConfigService(reader, test_settings)
            assert reader_service.get_rate().is_default

            RateConfigService(writer, test_settings).set_rate(7)

            assert reader_service.get_rate().rate == 7
        finally:
            writer.close()
            reader.close()

    def test_boundaries_accepted(self, rate_service):
        assert rate_service.set_rate(0).rate == 0
        assert rate_service.set_rate(1000).rate == 1000

    @pytest.mark.parametrize("value", [-1, 1001, 1.5, "10", True, None])
    def test_invalid_rate_rejected_and_not_stored(self, db, rate_service, value):
        with pytest.raises(InvalidRateError):
            rate_service.set_rate(value)

        assert ConfigRepository(db).get_value(POINTS_RATE_KEY) is None

    @pytest.mark.parametrize("stored", ["abc", "1.5", "-3", ""])
    def test_corrupt_stored_value(self, db, rate_service, stored):
        ConfigRepository(db).upsert_value(POINTS_RATE_KEY, stored)
        db.commit()

        with pytest.raises(RateConfigInvalidError) as exc_info:
            rate_service.get_rate()
        assert exc_info.value.error_code == "RATE_CONFIG_INVALID"

    def test_strict_mode_fails_closed(self, db, test_settings):
        strict = test_settings.model_copy(update={"POINTS_RATE_STRICT": True})
        service = RateConfigService(db, strict)

        with pytest.raises(RateConfigInvalidError):
            service.get_rate()

        service.set_rate(0)
        with pytest.raises(RateConfigInvalidError):
            service.get_rate()
