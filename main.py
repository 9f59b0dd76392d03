# main.py
import logging
import time

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core import config as CFG
from routers.parking_search import router as parking_router
from services.search_service import ParkingSearchService, get_search_service

# =============================================================================
# FastAPI
# =============================================================================
app = FastAPI(title="Taiwan Parking Search API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)
app.include_router(parking_router)

logging.basicConfig(
    level=getattr(logging, CFG.LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(message)s",
)

@app.get("/")
async def root():
    return {"message": "台灣停車場即時車位查詢 API（TDX）"}

@app.get("/health")
def health(svc: ParkingSearchService = Depends(get_search_service)):
    return {
        "time": time.strftime("%Y-%m-%d %H:%M:%S"),
        "tdx_credentials_present": bool(CFG.TDX_CLIENT_ID and CFG.TDX_CLIENT_SECRET),
        "token_cached": svc.tokens.has_token,
        "metadata_cities": svc.metadata.loaded_cities,
        "availability_cities": svc.availability.cached_cities,
    }

# =============================================================================
# 啟動
# =============================================================================
if __name__ == "__main__":
    uvicorn.run(app, host=CFG.HOST, port=CFG.PORT)
