# core/geo.py
import math

EARTH_RADIUS_KM = 6371.0

def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """兩點大圓距離（haversine），單位公里。座標合法性由呼叫端負責。"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    # 浮點誤差可能讓 a 略大於 1
    a = min(1.0, a)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
