import pytest

from steering.core.errors import ConfigValidationError, ValidationReason
from steering.core.locations import ServiceLocation, ServiceLocationTable
from steering.core.validator import validate_configuration
from steering.schemas.steering import ContentSteeringConfig


def make_config(ttl=100, reload_uri="http://host/dash.dcsm", locations=None):
    if locations is None:
        locations = [("b2", "https://cdn2/"), ("b1", "https://cdn1/")]
    return ContentSteeringConfig(
        TTL=ttl,
        RELOAD_URI=reload_uri,
        serviceLocations=[
            {"serviceLocationId": sl_id, "serviceLocationUri": uri} for sl_id, uri in locations
        ],
    )


class TestValidateConfiguration:

    def test_valid_configuration_keeps_submitted_order(self):
        parameters, table = validate_configuration(make_config())

        assert parameters.reload_uri == "http://host/dash.dcsm"
        assert parameters.ttl_seconds == 100
        assert parameters.version == 1
        assert table.ids() == ["b2", "b1"]
        assert list(table) == [ServiceLocation("b2", "https://cdn2/"), ServiceLocation("b1", "https://cdn1/")]

    def test_empty_reload_uri_rejected(self):
        with pytest.raises(ConfigValidationError) as excinfo:
            validate_configuration(make_config(reload_uri=""))
        assert excinfo.value.reason is ValidationReason.EMPTY_RELOAD_URI

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_non_positive_ttl_rejected(self, ttl):
        with pytest.raises(ConfigValidationError) as excinfo:
            validate_configuration(make_config(ttl=ttl))
        assert excinfo.value.reason is ValidationReason.NON_POSITIVE_TTL

    def test_reload_uri_checked_before_ttl(self):
        with pytest.raises(ConfigValidationError) as excinfo:
            validate_configuration(make_config(ttl=0, reload_uri=""))
        assert excinfo.value.reason is ValidationReason.EMPTY_RELOAD_URI

    def test_empty_service_location_id_rejected(self):
        config = make_config(locations=[("b1", "https://cdn1/"), ("", "https://cdn2/")])
        with pytest.raises(ConfigValidationError) as excinfo:
            validate_configuration(config)
        assert excinfo.value.reason is ValidationReason.EMPTY_SERVICE_LOCATION_ID
        assert excinfo.value.index == 1

    def test_empty_service_location_uri_rejected(self):
        config = make_config(locations=[("b1", "")])
        with pytest.raises(ConfigValidationError) as excinfo:
            validate_configuration(config)
        assert excinfo.value.reason is ValidationReason.EMPTY_SERVICE_LOCATION_URI

    def test_first_offending_entry_wins(self):
        """Validation stops at the first bad entry"""
        config = make_config(locations=[("b1", ""), ("", "https://cdn2/")])
        with pytest.raises(ConfigValidationError) as excinfo:
            validate_configuration(config)
        assert excinfo.value.reason is ValidationReason.EMPTY_SERVICE_LOCATION_URI
        assert excinfo.value.index == 0

    def test_duplicate_service_location_id_rejected(self):
        config = make_config(locations=[("b1", "https://cdn1/"), ("b1", "https://cdn2/")])
        with pytest.raises(ConfigValidationError) as excinfo:
            validate_configuration(config)
        assert excinfo.value.reason is ValidationReason.DUPLICATE_SERVICE_LOCATION_ID

    def test_empty_location_list_gives_empty_table(self):
        _, table = validate_configuration(make_config(locations=[]))
        assert table == ServiceLocationTable()
        assert not table
        assert table.default() is None

    def test_error_message_names_the_entry(self):
        with pytest.raises(ConfigValidationError) as excinfo:
            validate_configuration(make_config(locations=[("", "https://cdn1/")]))
        assert "Empty ServiceLocationId" in excinfo.value.message
        assert "serviceLocations[0]" in excinfo.value.message
