# routers/parking_search.py
import asyncio
import logging
import traceback
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from core.errors import ValidationError
from models.parking import CITY_CENTERS, parse_location, parse_search_query
from services.search_service import ParkingSearchService, get_search_service, nearest_city

router = APIRouter(prefix="/api/parking", tags=["parking"])

def _fail(message: str, status: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status, content={"success": False, "error": message})

@router.get("/search")
async def search(request: Request, service: ParkingSearchService = Depends(get_search_service)):
    """
    查詢參數：city（必填）、parkingType、availability、latitude + longitude（成對，選填）
    成功 → {success: true, data: [...], total, timestamp}；任何失敗 → 400 {success: false, error}
    """
    req_id = uuid.uuid4().hex[:8]
    try:
        query = parse_search_query(request.query_params)
        items = await asyncio.get_running_loop().run_in_executor(None, lambda: service.search(query))
    except ValidationError as e:
        logging.warning(f"[{req_id}] 查詢參數錯誤：{e.errors}")
        return _fail(str(e))
    except Exception as e:
        logging.error(f"[{req_id}] 停車場搜尋失敗\n{traceback.format_exc()}")
        return _fail(str(e) or "Invalid search parameters")

    logging.debug(f"[{req_id}] city={query.city.value} 回傳 {len(items)} 筆")
    return {
        "success": True,
        "data": [it.to_public() for it in items],
        "total": len(items),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@router.api_route("/search", methods=["POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"], include_in_schema=False)
async def search_method_not_allowed():
    return JSONResponse(status_code=405, content={"error": "Method not allowed"},
                        headers={"Allow": "GET"})

@router.get("/cities")
async def cities():
    return {
        "success": True,
        "data": [{"city": c.value, "latitude": lat, "longitude": lon}
                 for c, (lat, lon) in CITY_CENTERS.items()],
    }

@router.get("/nearest-city")
async def nearest(request: Request):
    try:
        loc = parse_location(request.query_params)
    except ValidationError as e:
        return _fail(str(e))
    return {"success": True, "data": {"city": nearest_city(loc.latitude, loc.longitude).value}}
