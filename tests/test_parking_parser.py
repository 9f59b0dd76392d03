"""Tests for TDX payload parsing."""

import pytest

from conftest import TAIPEI_AVAILABILITY, TAIPEI_CAR_PARKS
from core.errors import UpstreamError
from models.parking import City
from parsers.parking_parser import parse_availability, parse_car_parks, safe_int


class TestParseCarParks:

    def test_fields(self):
        lots = {m.car_park_id: m for m in parse_car_parks(TAIPEI_CAR_PARKS, City.Taipei)}
        tp1 = lots["TP001"]
        assert tp1.city is City.Taipei
        assert tp1.name.zh_tw == "台北車站地下停車場"
        assert tp1.name.en == "Taipei Main Station"
        assert (tp1.latitude, tp1.longitude) == (25.0478, 121.5171)
        assert tp1.telephone == "02-2311-1234"
        assert tp1.image_url == "https://img.example/tp001.jpg"

    def test_optional_fields_default_to_empty(self):
        lots = {m.car_park_id: m for m in parse_car_parks(TAIPEI_CAR_PARKS, City.Taipei)}
        tp4 = lots["TP004"]
        assert tp4.telephone == ""
        assert tp4.description == ""
        assert tp4.image_url == ""
        assert tp4.address == ""

    def test_image_list_uses_first(self):
        lots = {m.car_park_id: m for m in parse_car_parks(TAIPEI_CAR_PARKS, City.Taipei)}
        assert lots["TP003"].image_url == "https://img.example/tp003.jpg"

    def test_bare_list_and_missing_id(self):
        lots = parse_car_parks([{"CarParkName": {"Zh_tw": "無編號"}}, {"CarParkID": "X1"}], City.Keelung)
        assert [m.car_park_id for m in lots] == ["X1"]
        assert (lots[0].latitude, lots[0].longitude) == (0.0, 0.0)

    def test_unexpected_shape(self):
        with pytest.raises(UpstreamError):
            parse_car_parks({"message": "quota exceeded"}, City.Taipei)


class TestParseAvailability:

    def test_spaces(self):
        lots = {l.car_park_id: l for l in parse_availability(TAIPEI_AVAILABILITY)}
        assert lots["TP001"].space(1).available_spaces == 6
        assert lots["TP001"].space(1).total_spaces == 200
        assert lots["TP001"].space(2).available_spaces == 10
        assert lots["TP002"].space(2) is None

    def test_keeps_feed_order(self):
        ids = [l.car_park_id for l in parse_availability(TAIPEI_AVAILABILITY)]
        assert ids == ["TP001", "TP002", "TP003", "TP004", "TP999"]

    def test_negative_and_missing_counts(self):
        payload = {"ParkingAvailabilities": [{
            "CarParkID": "K1",
            "Availabilities": [
                {"SpaceType": 1, "NumberOfSpaces": 10, "AvailableSpaces": -9},
                {"SpaceType": "2", "NumberOfSpaces": None},
                {"NumberOfSpaces": 3, "AvailableSpaces": 3},
            ],
        }]}
        (lot,) = parse_availability(payload)
        assert lot.space(1).available_spaces == 0
        assert lot.space(2).total_spaces == 0
        assert len(lot.availabilities) == 2

    def test_not_a_list(self):
        with pytest.raises(UpstreamError):
            parse_availability({"ParkingAvailabilities": "oops"})


def test_safe_int():
    assert safe_int("1,200") == 1200
    assert safe_int("") is None
    assert safe_int("n/a") is None
