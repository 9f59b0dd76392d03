# services/search_service.py
import logging
import threading
import time
from typing import Callable, List, Optional

from core.geo import distance_km
from models.parking import (
    AVAILABILITY_THRESHOLD, CITY_CENTERS, SPACE_TYPE, City, LocalizedName, LotAvailability,
    ParkingLotMetadata, ResultLocation, SearchQuery, SearchResultItem,
)
from services.parking_service import AvailabilityCache, MetadataLoader
from services.token_service import TokenManager


class ParkingSearchService:
    """
    停車場搜尋主流程。順序固定：
      1) 取即時車位快照
      2) 確認該城市靜態資料已載入（在 1 之後；join 前必須完成）
      3) 依車種與剩餘車位門檻過濾
      4) 以 (city, CarParkID) 對上靜態資料，缺的補空值與 (0, 0) 座標
      5) 有使用者座標 → 算距離、由近到遠；否則依剩餘車位由多到少
    任何例外都往上丟，由路由層統一轉成錯誤回應。
    """

    def __init__(self, tokens: TokenManager, metadata: MetadataLoader,
                 availability: AvailabilityCache):
        self.tokens = tokens
        self.metadata = metadata
        self.availability = availability

    @classmethod
    def build(cls, clock: Callable[[], float] = time.time, **fetchers) -> "ParkingSearchService":
        """組裝三個快取；fetchers 可帶 exchange / fetch_car_parks / fetch_availability 取代上游呼叫。"""
        tokens = TokenManager(**_only(fetchers, exchange="exchange"), clock=clock)
        metadata = MetadataLoader(tokens, **_only(fetchers, fetch_car_parks="fetch"))
        availability = AvailabilityCache(tokens, **_only(fetchers, fetch_availability="fetch"),
                                         clock=clock)
        return cls(tokens, metadata, availability)

    def search(self, query: SearchQuery) -> List[SearchResultItem]:
        space_type = SPACE_TYPE[query.parking_type]
        threshold = AVAILABILITY_THRESHOLD[query.availability]

        lots = self.availability.get(query.city)
        self.metadata.ensure_loaded(query.city)

        results: List[SearchResultItem] = []
        for lot in lots:
            space = lot.space(space_type)
            if space is None or space.available_spaces < threshold:
                continue
            meta = self.metadata.lookup(query.city, lot.car_park_id)
            results.append(self._join(lot, meta, space.total_spaces, space.available_spaces, query))

        if query.location is not None:
            results.sort(key=lambda it: it.distance)
        else:
            results.sort(key=lambda it: it.available_spaces, reverse=True)

        logging.debug(f"[search] city={query.city.value} type={query.parking_type.value} "
                      f"tier={query.availability.value} → {len(results)}/{len(lots)}")
        return results

    @staticmethod
    def _join(lot: LotAvailability, meta: Optional[ParkingLotMetadata],
              total: int, available: int, query: SearchQuery) -> SearchResultItem:
        if meta is not None:
            name = meta.name if (meta.name.zh_tw or meta.name.en) else lot.name
            lat, lon = meta.latitude, meta.longitude
        else:
            # 即時資料有、靜態資料還沒有的停車場
            name = lot.name
            lat, lon = 0.0, 0.0

        distance = None
        if query.location is not None:
            distance = distance_km(query.location.latitude, query.location.longitude, lat, lon)

        return SearchResultItem(
            car_park_id=lot.car_park_id,
            car_park_name=LocalizedName(zh_tw=name.zh_tw, en=name.en),
            total_spaces=total,
            available_spaces=available,
            location=ResultLocation(latitude=lat, longitude=lon),
            address=meta.address if meta else "",
            telephone=meta.telephone if meta else "",
            image_url=meta.image_url if meta else "",
            description=meta.description if meta else "",
            distance=distance,
        )


def nearest_city(latitude: float, longitude: float) -> City:
    """離座標最近的支援城市（以城市中心點計）。"""
    return min(CITY_CENTERS, key=lambda c: distance_km(latitude, longitude, *CITY_CENTERS[c]))


def _only(src: dict, **rename) -> dict:
    return {dst: src[k] for k, dst in rename.items() if k in src}


# -----------------------------
# 程序內共用的預設實例（FastAPI dependency）
# -----------------------------
_service: Optional[ParkingSearchService] = None
_service_lock = threading.Lock()

def get_search_service() -> ParkingSearchService:
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = ParkingSearchService.build()
    return _service
