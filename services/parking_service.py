# services/parking_service.py
# 路外停車場快取：
#   MetadataLoader    靜態資料，每個城市整個程序生命週期只載一次
#   AvailabilityCache 即時車位，每城市一份快照，TTL 到期整份替換
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from core.config import AVAILABILITY_CACHE_TTL_SEC
from models.parking import (
    AvailabilitySnapshot, City, LotAvailability, ParkingLotMetadata,
)
from parsers.parking_parser import parse_availability, parse_car_parks
from services import tdx_client
from services.token_service import TokenManager

Fetch = Callable[[str, str], Any]   # (city, token) -> 上游 JSON


class _KeyedLocks:
    """每個 key 一把鎖，讓同一城市同時間只有一個上游請求。"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())


class MetadataLoader:

    def __init__(self, tokens: TokenManager, fetch: Fetch = tdx_client.fetch_car_parks):
        self._tokens = tokens
        self._fetch = fetch
        self._cache: Dict[Tuple[str, str], ParkingLotMetadata] = {}
        self._loaded: Set[str] = set()
        self._locks = _KeyedLocks()

    def is_loaded(self, city: City) -> bool:
        return City(city).value in self._loaded

    def ensure_loaded(self, city: City) -> None:
        """
        第一次遇到某城市時抓取並填入快取；之後一律不再抓（靜態資料很少變）。
        抓取或解析失敗不會標記為已載入，下個請求會重試。
        """
        key = City(city).value
        if key in self._loaded:
            return
        with self._locks.get(key):
            if key in self._loaded:
                return
            token = self._tokens.get_access_token()
            lots = parse_car_parks(self._fetch(key, token), City(key))
            # 先組好新 dict 再整份換上，讀取端不會看到一半的資料
            merged = dict(self._cache)
            for m in lots:
                merged[(key, m.car_park_id)] = m
            self._cache = merged
            self._loaded.add(key)
            logging.info(f"[metadata] {key} 載入 {len(lots)} 筆停車場資料")

    def lookup(self, city: City, car_park_id: str) -> Optional[ParkingLotMetadata]:
        return self._cache.get((City(city).value, car_park_id))

    @property
    def loaded_cities(self) -> List[str]:
        return sorted(self._loaded)


class AvailabilityCache:

    def __init__(self, tokens: TokenManager,
                 fetch: Fetch = tdx_client.fetch_parking_availability,
                 clock: Callable[[], float] = time.time,
                 ttl: float = AVAILABILITY_CACHE_TTL_SEC):
        self._tokens = tokens
        self._fetch = fetch
        self._clock = clock
        self._ttl = ttl
        self._cache: Dict[str, AvailabilitySnapshot] = {}
        self._locks = _KeyedLocks()

    def _hit_cache(self, key: str) -> Optional[List[LotAvailability]]:
        snap = self._cache.get(key)
        if snap is None:
            return None
        if self._clock() < snap.expires_at:
            return snap.lots
        return None

    def _set_cache(self, key: str, lots: List[LotAvailability]) -> List[LotAvailability]:
        snap = AvailabilitySnapshot(expires_at=self._clock() + self._ttl, lots=lots)
        self._cache[key] = snap
        return snap.lots

    def get(self, city: City) -> List[LotAvailability]:
        key = City(city).value
        hit = self._hit_cache(key)
        if hit is not None:
            logging.debug(f"[availability] {key} 命中快取")
            return hit
        with self._locks.get(key):
            hit = self._hit_cache(key)
            if hit is not None:
                return hit
            # 過期快照不可再被讀到
            self._cache.pop(key, None)
            token = self._tokens.get_access_token()
            lots = self._set_cache(key, parse_availability(self._fetch(key, token)))
            logging.info(f"[availability] {key} 更新 {len(lots)} 筆即時車位")
            return lots

    @property
    def cached_cities(self) -> List[str]:
        now = self._clock()
        return sorted(k for k, s in self._cache.items() if now < s.expires_at)
