# models/parking.py
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from core.errors import ValidationError


class City(str, Enum):
    # 值即 TDX API 路徑上的城市代碼
    Taipei = "Taipei"
    Taoyuan = "Taoyuan"
    Taichung = "Taichung"
    Tainan = "Tainan"
    Kaohsiung = "Kaohsiung"
    Keelung = "Keelung"
    ChanghuaCounty = "ChanghuaCounty"
    YunlinCounty = "YunlinCounty"
    PingtungCounty = "PingtungCounty"
    YilanCounty = "YilanCounty"
    HualienCounty = "HualienCounty"
    KinmenCounty = "KinmenCounty"


class ParkingType(str, Enum):
    Car = "Car"
    Scooter = "Scooter"
    Heavy = "Heavy"


class ParkingAvailability(str, Enum):
    Available = "Available"
    Many = "Many"
    Few = "Few"
    Any = "Any"


# TDX SpaceType 代碼
SPACE_TYPE: Dict[ParkingType, int] = {
    ParkingType.Car: 1,
    ParkingType.Scooter: 2,
    ParkingType.Heavy: 5,
}

# 各等級的最少剩餘車位
AVAILABILITY_THRESHOLD: Dict[ParkingAvailability, int] = {
    ParkingAvailability.Any: 0,
    ParkingAvailability.Available: 1,
    ParkingAvailability.Few: 3,
    ParkingAvailability.Many: 5,
}

# 各縣市政府所在地附近的中心點（前端用來挑最近城市）
CITY_CENTERS: Dict[City, Tuple[float, float]] = {
    City.Taipei: (25.0330, 121.5654),
    City.Taoyuan: (24.9937, 121.3036),
    City.Taichung: (24.1477, 120.6736),
    City.Tainan: (22.9960, 120.2152),
    City.Kaohsiung: (22.6273, 120.3014),
    City.Keelung: (25.1291, 121.7468),
    City.ChanghuaCounty: (24.0809, 120.5385),
    City.YunlinCounty: (23.7075, 120.5439),
    City.PingtungCounty: (22.6726, 120.4878),
    City.YilanCounty: (24.7560, 121.7549),
    City.HualienCounty: (23.9764, 121.6099),
    City.KinmenCounty: (24.4368, 118.3186),
}


def _check_exhaustive(name: str, table: Mapping, enum_cls) -> None:
    missing = [m.value for m in enum_cls if m not in table]
    if missing:
        raise RuntimeError(f"{name} 缺少對應：{', '.join(missing)}")


_check_exhaustive("SPACE_TYPE", SPACE_TYPE, ParkingType)
_check_exhaustive("AVAILABILITY_THRESHOLD", AVAILABILITY_THRESHOLD, ParkingAvailability)
_check_exhaustive("CITY_CENTERS", CITY_CENTERS, City)


# -----------------------------
# 查詢
# -----------------------------
class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class SearchQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: City
    parking_type: ParkingType = ParkingType.Car
    availability: ParkingAvailability = ParkingAvailability.Available
    location: Optional[Location] = None


# 對外欄位名 → 錯誤訊息
_FIELD_MESSAGES = {
    "city": "Unsupported city",
    "parkingType": "Unsupported parking type",
    "availability": "Unsupported availability",
    "latitude": "Latitude must be between -90 and 90",
    "longitude": "Longitude must be between -180 and 180",
}

# pydantic 欄位路徑 → 對外 query 參數名
_PARAM_NAMES = {
    "city": "city",
    "parking_type": "parkingType",
    "availability": "availability",
    "latitude": "latitude",
    "longitude": "longitude",
}


def _blank(v: Optional[str]) -> bool:
    return v is None or str(v).strip() == ""


def parse_search_query(params: Mapping[str, str]) -> SearchQuery:
    """
    把 HTTP query 參數轉成 SearchQuery。
    任何欄位不合法都丟 ValidationError（帶各欄位訊息），不做部分處理。
    parkingType / availability 缺省時用預設值；latitude / longitude 必須成對出現。
    """
    errors: Dict[str, str] = {}
    raw = {
        "city": (params.get("city") or "").strip(),
    }
    if not _blank(params.get("parkingType")):
        raw["parking_type"] = params["parkingType"].strip()
    if not _blank(params.get("availability")):
        raw["availability"] = params["availability"].strip()

    lat, lon = params.get("latitude"), params.get("longitude")
    if _blank(lat) != _blank(lon):
        missing = "latitude" if _blank(lat) else "longitude"
        errors[missing] = "latitude and longitude must be provided together"
    elif not _blank(lat):
        raw["location"] = {"latitude": lat.strip(), "longitude": lon.strip()}

    try:
        query = SearchQuery(**raw)
    except PydanticValidationError as e:
        for err in e.errors():
            field = str(err["loc"][-1]) if err.get("loc") else "query"
            param = _PARAM_NAMES.get(field, field)
            errors.setdefault(param, _FIELD_MESSAGES.get(param, err.get("msg", "Invalid value")))
        query = None

    if errors:
        raise ValidationError(errors)
    return query


def parse_location(params: Mapping[str, str]) -> Location:
    lat, lon = params.get("latitude"), params.get("longitude")
    errors: Dict[str, str] = {}
    for name, v in (("latitude", lat), ("longitude", lon)):
        if _blank(v):
            errors[name] = f"{name} is required"
    if errors:
        raise ValidationError(errors)
    try:
        return Location(latitude=lat.strip(), longitude=lon.strip())
    except PydanticValidationError as e:
        for err in e.errors():
            field = str(err["loc"][-1])
            errors.setdefault(field, _FIELD_MESSAGES.get(field, "Invalid value"))
        raise ValidationError(errors) from e


# -----------------------------
# 快取內部結構
# -----------------------------
class Credential(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: float


class LocalizedName(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    zh_tw: str = Field(default="", alias="zh-TW")
    en: str = ""


class ParkingLotMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: City
    car_park_id: str
    name: LocalizedName = LocalizedName()
    telephone: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    address: str = ""
    description: str = ""
    image_url: str = ""


class SpaceAvailability(BaseModel):
    model_config = ConfigDict(frozen=True)

    space_type: int
    total_spaces: int = 0
    available_spaces: int = 0


class LotAvailability(BaseModel):
    model_config = ConfigDict(frozen=True)

    car_park_id: str
    name: LocalizedName = LocalizedName()
    availabilities: List[SpaceAvailability] = []

    def space(self, space_type: int) -> Optional[SpaceAvailability]:
        for sa in self.availabilities:
            if sa.space_type == space_type:
                return sa
        return None


class AvailabilitySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    expires_at: float
    lots: List[LotAvailability] = []


# -----------------------------
# 回應（欄位名與前端一致）
# -----------------------------
class ResultLocation(BaseModel):
    latitude: float
    longitude: float


class SearchResultItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    car_park_id: str = Field(alias="carParkID")
    car_park_name: LocalizedName = Field(alias="carParkName")
    total_spaces: int = Field(alias="totalSpaces")
    available_spaces: int = Field(alias="availableSpaces")
    location: ResultLocation
    address: str = ""
    telephone: str = ""
    image_url: str = Field(default="", alias="imageURL")
    description: str = ""
    distance: Optional[float] = None         # km；無使用者座標時為 None

    def to_public(self) -> dict:
        return self.model_dump(by_alias=True)
