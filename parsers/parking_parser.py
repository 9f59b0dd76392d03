# parsers/parking_parser.py
# TDX 路外停車場 JSON → 內部模型
from typing import Any, Dict, List, Optional

from core.errors import UpstreamError
from models.parking import (
    City, LocalizedName, LotAvailability, ParkingLotMetadata, SpaceAvailability,
)

def safe_float(x) -> Optional[float]:
    try:
        if x is None or x == "":
            return None
        return float(str(x).replace(",", ""))
    except (TypeError, ValueError):
        return None

def safe_int(x) -> Optional[int]:
    f = safe_float(x)
    return int(f) if f is not None else None

def _pick(d: dict, *cands):
    for c in cands:
        v = d.get(c)
        if v not in (None, ""):
            return v
    return None

def _text(v) -> str:
    return str(v).strip() if v is not None else ""

def _name(node) -> LocalizedName:
    # CarParkName: {"Zh_tw": "...", "En": "..."}；少數城市直接給字串
    if isinstance(node, dict):
        return LocalizedName(zh_tw=_text(node.get("Zh_tw")), en=_text(node.get("En")))
    return LocalizedName(zh_tw=_text(node))

def _image(d: dict) -> str:
    url = _pick(d, "ImageURL", "ImageUrl")
    if url:
        return _text(url)
    urls = d.get("ImageURLs") or []
    if isinstance(urls, list) and urls:
        return _text(urls[0])
    return ""

def _records(payload: Any, key: str) -> List[Dict[str, Any]]:
    """取出 payload[key]（或 payload 本身就是陣列），其他形狀視為上游錯誤。"""
    if isinstance(payload, dict):
        rows = payload.get(key)
        if rows is None:
            raise UpstreamError(f"TDX response missing '{key}'")
    else:
        rows = payload
    if not isinstance(rows, list):
        raise UpstreamError(f"TDX '{key}' is not a list")
    return [r for r in rows if isinstance(r, dict)]

def parse_car_parks(payload: Any, city: City) -> List[ParkingLotMetadata]:
    items: List[ParkingLotMetadata] = []
    for d in _records(payload, "CarParks"):
        cid = _text(d.get("CarParkID"))
        if not cid:
            continue
        pos = d.get("CarParkPosition") or {}
        items.append(ParkingLotMetadata(
            city=city,
            car_park_id=cid,
            name=_name(d.get("CarParkName")),
            telephone=_text(_pick(d, "Telephone", "EmergencyPhone")),
            latitude=safe_float(pos.get("PositionLat")) or 0.0,
            longitude=safe_float(pos.get("PositionLon")) or 0.0,
            address=_text(d.get("Address")),
            description=_text(d.get("Description")),
            image_url=_image(d),
        ))
    return items

def parse_availability(payload: Any) -> List[LotAvailability]:
    items: List[LotAvailability] = []
    for d in _records(payload, "ParkingAvailabilities"):
        cid = _text(d.get("CarParkID"))
        if not cid:
            continue
        spaces: List[SpaceAvailability] = []
        for av in d.get("Availabilities") or []:
            if not isinstance(av, dict):
                continue
            st = safe_int(av.get("SpaceType"))
            if st is None:
                continue
            spaces.append(SpaceAvailability(
                space_type=st,
                total_spaces=safe_int(av.get("NumberOfSpaces")) or 0,
                # 上游以負值表示「無資料」
                available_spaces=max(0, safe_int(av.get("AvailableSpaces")) or 0),
            ))
        items.append(LotAvailability(
            car_park_id=cid,
            name=_name(d.get("CarParkName")),
            availabilities=spaces,
        ))
    return items
