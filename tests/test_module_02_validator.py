"""
Tests for Module 02: Parameter Validator.
Tests the field catalog, location type enum, URL parameter whitelist and
the per-cycle request parameter builder.
"""

import pytest

from airpoll.errors import InvalidBoundsError, ValidationError
from airpoll.geo.bounds import GeoPoint
from airpoll.ingestion.validator import (
    ALL_FIELDS, DEFAULT_FIELDS, PM25_FIELDS, URL_PARAMS, build_params, validate_params,
)


class TestCatalog:
    def test_groups_are_merged(self):
        assert "humidity" in ALL_FIELDS
        assert "pm2.5_alt" in ALL_FIELDS
        assert "pm2.5_1week_b" in ALL_FIELDS
        assert "pm10.0_cf_1" in ALL_FIELDS
        assert "confidence_manual" in ALL_FIELDS

    def test_pm25_group_size(self):
        assert len(PM25_FIELDS) == 12

    def test_default_fields_are_known(self):
        assert all(f in ALL_FIELDS for f in DEFAULT_FIELDS.split(","))

    def test_bounds_keys_are_url_params(self):
        assert {"nwlng", "nwlat", "selng", "selat"} <= URL_PARAMS


class TestValidateParams:
    def test_good_params(self):
        assert validate_params({"fields": "humidity,temperature", "location_type": "0"}) is None

    def test_many_fields(self):
        validate_params({
            "fields": "humidity,temperature,voc,pm1.0,pm2.5,pm10.0",
            "location_type": "1",
        })

    def test_unknown_field(self):
        with pytest.raises(ValidationError) as exc:
            validate_params({"fields": "not_a_field", "location_type": "0"})
        assert exc.value.token == "not_a_field"
        assert str(exc.value) == "invalid field not_a_field"

    def test_unknown_field_among_good_ones(self):
        with pytest.raises(ValidationError) as exc:
            validate_params({"fields": "humidity,bad_field,voc", "location_type": "0"})
        assert exc.value.token == "bad_field"

    def test_empty_field_token_rejected(self):
        with pytest.raises(ValidationError):
            validate_params({"fields": "humidity,,voc"})

    def test_bad_location_type(self):
        with pytest.raises(ValidationError) as exc:
            validate_params({"fields": "humidity", "location_type": "2"})
        assert exc.value.token == "2"

    def test_unknown_parameter(self):
        with pytest.raises(ValidationError) as exc:
            validate_params({"bogus": "x"})
        assert exc.value.token == "bogus"
        assert str(exc.value) == "unknown parameter bogus"

    @pytest.mark.parametrize("key", ["read_keys", "show_only", "modified_since", "max_age",
                                     "nwlng", "nwlat", "selng", "selat"])
    def test_known_optional_parameters(self, key):
        validate_params({"fields": "humidity", "location_type": "0", key: "1"})

    def test_empty_params_accepted(self):
        validate_params({})

    def test_revalidation_is_noop(self):
        params = {"fields": "humidity,temperature", "location_type": "0", "max_age": "3600"}
        before = dict(params)
        validate_params(params)
        validate_params(params)
        assert params == before


class TestBuildParams:
    def test_contains_bounds_and_defaults(self):
        params = build_params(GeoPoint(37.33, -121.89), 10.0)
        assert params["fields"] == DEFAULT_FIELDS
        assert params["location_type"] == "0"
        for key in ("nwlng", "nwlat", "selng", "selat"):
            assert key in params
        assert float(params["nwlat"]) > float(params["selat"])
        assert float(params["nwlng"]) < float(params["selng"])

    def test_extra_filters_are_kept(self):
        params = build_params(GeoPoint(37.33, -121.89), 5.0, extra={"max_age": "600"})
        assert params["max_age"] == "600"

    def test_custom_fields_validated(self):
        with pytest.raises(ValidationError):
            build_params(GeoPoint(37.33, -121.89), 5.0, fields="humidity,nope")

    def test_unknown_extra_rejected(self):
        with pytest.raises(ValidationError):
            build_params(GeoPoint(37.33, -121.89), 5.0, extra={"bogus": "x"})

    def test_impossible_box_raises(self):
        with pytest.raises(InvalidBoundsError):
            build_params(GeoPoint(0.0, 179.99), 10.0)
