"""
HTTP reporter for LocationTracker: posts classified fixes to the backend.
"""
from typing import Any, Dict, Optional
import requests
from app.core.logging_config import get_logger
from app.services.location_classifier import ReportDeliveryError

logger = get_logger("tracking_client")

LOCATION_UPDATE_PATH = "/api/v1/tracking/location"


class TrackingApiClient:
    def __init__(
        self,
        base_url: str,
        access_token: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ):
        self.url = base_url.rstrip("/") + LOCATION_UPDATE_PATH
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    def send_location(self, payload: Dict[str, Any]) -> None:
        body = {k: v for k, v in payload.items() if v is not None}
        try:
            response = self.session.post(self.url, json=body, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ReportDeliveryError(str(e)) from e
        if response.status_code >= 400:
            logger.error(
                f"Location update rejected: {response.status_code} - {response.text}",
                extra={"status_code": response.status_code},
            )
            raise ReportDeliveryError(f"HTTP {response.status_code}")

    __call__ = send_location
