"""
Pytest fixtures for the parking search service.

Everything upstream is faked: the clock is a controllable counter and the TDX
fetchers return canned payloads while recording their calls.
"""

import os

import pytest

os.environ.setdefault("TDX_CLIENT_ID", "test-client")
os.environ.setdefault("TDX_CLIENT_SECRET", "test-secret")  # pragma: allowlist secret

from services.search_service import ParkingSearchService, get_search_service  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeExchange:
    """Token endpoint stand-in; hands out tok-1, tok-2, ..."""

    def __init__(self, expires_in=3600, payload=None, log=None):
        self.expires_in = expires_in
        self.payload = payload
        self.log = log
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.log is not None:
            self.log.append("token")
        if self.payload is not None:
            return self.payload
        return {"access_token": f"tok-{self.calls}", "expires_in": self.expires_in}


class FakeFetch:
    """(city, token) -> payload; a payload that is an exception gets raised."""

    def __init__(self, payloads, name="fetch", log=None):
        self.payloads = payloads
        self.name = name
        self.log = log
        self.calls = []

    def __call__(self, city, token):
        self.calls.append((city, token))
        if self.log is not None:
            self.log.append(self.name)
        p = self.payloads[city]
        if isinstance(p, Exception):
            raise p
        return p


def car_park(cid, zh, en, lat, lon, **extra):
    d = {
        "CarParkID": cid,
        "CarParkName": {"Zh_tw": zh, "En": en},
        "CarParkPosition": {"PositionLat": lat, "PositionLon": lon},
    }
    d.update(extra)
    return d


def availability(cid, zh, *spaces):
    return {
        "CarParkID": cid,
        "CarParkName": {"Zh_tw": zh, "En": ""},
        "Availabilities": [
            {"SpaceType": st, "NumberOfSpaces": total, "AvailableSpaces": avail}
            for st, total, avail in spaces
        ],
    }


TAIPEI_CAR_PARKS = {
    "CarParks": [
        car_park("TP001", "台北車站地下停車場", "Taipei Main Station", 25.0478, 121.5171,
                 Address="台北市中正區北平西路3號", Telephone="02-2311-1234",
                 Description="24小時營業", ImageURL="https://img.example/tp001.jpg"),
        car_park("TP002", "信義威秀停車場", "Xinyi Vieshow", 25.0360, 121.5645,
                 Address="台北市信義區松壽路20號"),
        car_park("TP003", "西門町停車場", "Ximending", 25.0421, 121.5067,
                 Address="台北市萬華區成都路10號", ImageURLs=["https://img.example/tp003.jpg"]),
        car_park("TP004", "大安機車停車場", "Daan Scooter", 25.0330, 121.5430),
    ]
}

TAIPEI_AVAILABILITY = {
    "ParkingAvailabilities": [
        availability("TP001", "台北車站地下停車場", (1, 200, 6), (2, 50, 10)),
        availability("TP002", "信義威秀停車場", (1, 150, 2)),
        availability("TP003", "西門町停車場", (1, 120, 40), (5, 5, 1)),
        availability("TP004", "大安機車停車場", (2, 80, 0)),
        # 即時資料有、靜態資料沒有
        availability("TP999", "新開幕停車場", (1, 30, 8)),
    ]
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def exchange(call_log):
    return FakeExchange(log=call_log)


@pytest.fixture
def fetch_car_parks(call_log):
    return FakeFetch({"Taipei": TAIPEI_CAR_PARKS}, name="car_parks", log=call_log)


@pytest.fixture
def fetch_availability(call_log):
    return FakeFetch({"Taipei": TAIPEI_AVAILABILITY}, name="availability", log=call_log)


@pytest.fixture
def service(clock, exchange, fetch_car_parks, fetch_availability):
    return ParkingSearchService.build(
        clock=clock,
        exchange=exchange,
        fetch_car_parks=fetch_car_parks,
        fetch_availability=fetch_availability,
    )


@pytest.fixture
def client(service):
    from fastapi.testclient import TestClient

    from main import app

    app.dependency_overrides[get_search_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
