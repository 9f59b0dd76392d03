# core/errors.py
from typing import Dict, Optional


class ParkingSearchError(Exception):
    """搜尋流程中所有可預期錯誤的基底類別。"""


class ValidationError(ParkingSearchError):
    """查詢參數錯誤；errors 為 {欄位: 訊息}。"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()) or "Invalid search parameters")


class AuthenticationError(ParkingSearchError):
    """TDX token 交換失敗或回應缺少 access_token。"""


class UpstreamError(ParkingSearchError):
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)
