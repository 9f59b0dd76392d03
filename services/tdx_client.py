# services/tdx_client.py
# TDX 上游呼叫：token 交換、停車場靜態資料、即時車位
# requests 例外在這一層轉成 AuthenticationError / UpstreamError，不重試
import logging
from typing import Any, Dict

import requests

from core import config as CFG
from core.errors import AuthenticationError, UpstreamError
from core.http_client import http_get, http_post_form

def request_token() -> Dict[str, Any]:
    """以 client credentials 換 token，回傳上游 JSON（含 access_token / expires_in）。"""
    data = {
        "grant_type": "client_credentials",
        "client_id": CFG.TDX_CLIENT_ID or "",
        "client_secret": CFG.TDX_CLIENT_SECRET or "",
    }
    try:
        r = http_post_form(CFG.TDX_TOKEN_URL, data=data)
        r.raise_for_status()
        return r.json()
    # requests.JSONDecodeError 同時是 ValueError 與 RequestException，須先攔
    except ValueError as e:
        raise AuthenticationError("TDX token response is not JSON") from e
    except requests.RequestException as e:
        logging.warning(f"[tdx] token 交換失敗：{type(e).__name__}: {e}")
        raise AuthenticationError(f"TDX token request failed: {e}") from e

def _get_json(url: str, token: str) -> Any:
    try:
        r = http_get(url, headers={"Authorization": f"Bearer {token}"})
        r.raise_for_status()
        return r.json()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise UpstreamError(f"TDX request failed with status {status}", status=status) from e
    except ValueError as e:
        raise UpstreamError("TDX response is not JSON") from e
    except requests.RequestException as e:
        raise UpstreamError(f"TDX request failed: {type(e).__name__}") from e

def fetch_car_parks(city: str, token: str) -> Any:
    logging.info(f"[tdx] 抓取停車場資料 city={city}")
    return _get_json(CFG.CAR_PARK_URL.format(city=city), token)

def fetch_parking_availability(city: str, token: str) -> Any:
    logging.info(f"[tdx] 抓取即時車位 city={city}")
    return _get_json(CFG.PARKING_AVAILABILITY_URL.format(city=city), token)
