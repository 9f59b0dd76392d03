# core/endpoints.py

TDX_BASE = "https://tdx.transportdata.tw"

ENDPOINTS = {
    # OAuth client-credentials 換取 access token
    "tdx_token": f"{TDX_BASE}/auth/realms/TDXConnect/protocol/openid-connect/token",

    # 路外停車場：靜態資料（名稱、座標、地址、電話、圖片）
    "car_park": f"{TDX_BASE}/api/basic/v1/Parking/OffStreet/CarPark/City/{{city}}?$format=JSON",

    # 路外停車場：即時剩餘車位（依車種分列）
    "parking_availability": f"{TDX_BASE}/api/basic/v1/Parking/OffStreet/ParkingAvailability/City/{{city}}?$format=JSON",
}
