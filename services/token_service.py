# services/token_service.py
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from core.config import TOKEN_SAFETY_MARGIN_SEC
from core.errors import AuthenticationError
from models.parking import Credential
from services import tdx_client

class TokenManager:
    """
    快取 TDX access token。
    過期時間記為 now + expires_in - safety_margin，避免和上游過期時間賽跑。
    換 token 時持鎖，同時間只有一個請求會打上游。
    """

    def __init__(self,
                 exchange: Callable[[], Dict[str, Any]] = tdx_client.request_token,
                 clock: Callable[[], float] = time.time,
                 safety_margin: float = TOKEN_SAFETY_MARGIN_SEC):
        self._exchange = exchange
        self._clock = clock
        self._safety_margin = safety_margin
        self._credential: Optional[Credential] = None
        self._lock = threading.Lock()

    def _hit_cache(self) -> Optional[str]:
        cred = self._credential
        if cred is not None and self._clock() < cred.expires_at:
            return cred.token
        return None

    def get_access_token(self) -> str:
        hit = self._hit_cache()
        if hit is not None:
            return hit
        with self._lock:
            # 等鎖期間可能已被其他請求換好
            hit = self._hit_cache()
            if hit is not None:
                return hit
            payload = self._exchange() or {}
            token = payload.get("access_token")
            if not token:
                raise AuthenticationError("TDX token response is missing access_token")
            try:
                lifetime = float(payload.get("expires_in") or 0)
            except (TypeError, ValueError):
                lifetime = 0.0
            now = self._clock()
            self._credential = Credential(token=str(token),
                                          expires_at=now + lifetime - self._safety_margin)
            logging.info(f"[token] 取得新 token，有效 {lifetime:.0f}s")
            return self._credential.token

    @property
    def has_token(self) -> bool:
        return self._hit_cache() is not None
