# core/config.py
import os
from dotenv import load_dotenv, find_dotenv
from .endpoints import ENDPOINTS

load_dotenv(find_dotenv(filename=".env", usecwd=True), override=False)

# TDX 憑證（未設定時送空字串，由上游拒絕換 token）
TDX_CLIENT_ID = os.getenv("TDX_CLIENT_ID", "")
TDX_CLIENT_SECRET = os.getenv("TDX_CLIENT_SECRET", "")

# Timeouts / Retry（搜尋路徑不重試，預設 0）
DEFAULT_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "6.0"))
RETRY_TOTAL = int(os.getenv("HTTP_RETRY_TOTAL", "0"))

# 快取
TOKEN_SAFETY_MARGIN_SEC = int(os.getenv("TOKEN_SAFETY_MARGIN_SEC", "60"))
AVAILABILITY_CACHE_TTL_SEC = int(os.getenv("AVAILABILITY_CACHE_TTL_SEC", "60"))

# 服務
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

# URL 由 endpoints.py 統一控管
TDX_TOKEN_URL = ENDPOINTS["tdx_token"]
CAR_PARK_URL = ENDPOINTS["car_park"]
PARKING_AVAILABILITY_URL = ENDPOINTS["parking_availability"]
