"""
Midtrans Gateway Client
Wraps the Snap (hosted checkout) and Core (direct charge / status) APIs.
"""
import logging
from typing import Any, Dict, Optional

import requests
from flask import current_app

logger = logging.getLogger(__name__)

SNAP_URLS = {
    True: "https://app.midtrans.com/snap/v1",
    False: "https://app.sandbox.midtrans.com/snap/v1",
}
CORE_URLS = {
    True: "https://api.midtrans.com/v2",
    False: "https://api.sandbox.midtrans.com/v2",
}


class MidtransError(Exception):
    """A failed gateway call, carrying the gateway's status and message."""

    def __init__(self, message, http_status=None, body=None):
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.body = body


class MidtransClient:
    def __init__(
        self,
        server_key: str,
        client_key: str = "",
        is_production: bool = False,
        timeout: float = 30.0,
    ):
        self.server_key = server_key
        self.client_key = client_key
        self.is_production = is_production
        self.timeout = timeout
        self.snap_url = SNAP_URLS[bool(is_production)]
        self.core_url = CORE_URLS[bool(is_production)]

    @classmethod
    def from_config(cls, config) -> "MidtransClient":
        return cls(
            server_key=config.get("MIDTRANS_SERVER_KEY", ""),
            client_key=config.get("MIDTRANS_CLIENT_KEY", ""),
            is_production=bool(config.get("MIDTRANS_IS_PRODUCTION")),
        )

    def _request(
        self, method: str, url: str, payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        if not self.server_key:
            raise MidtransError("Midtrans server key is not configured")

        logger.info(f"Midtrans {method} {url}")
        try:
            response = requests.request(
                method,
                url,
                json=payload,
                auth=(self.server_key, ""),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Midtrans request failed: {e}")
            raise MidtransError(f"Gateway request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.status_code >= 400:
            message = _error_message(body) or f"Gateway returned HTTP {response.status_code}"
            logger.error(f"Midtrans error {response.status_code}: {message}")
            raise MidtransError(message, response.status_code, body)

        # Core API reports failures inside a 200 body
        status_code = str(body.get("status_code", "200"))
        if not status_code.startswith("2"):
            message = _error_message(body) or f"Gateway returned status {status_code}"
            logger.error(f"Midtrans error {status_code}: {message}")
            raise MidtransError(message, int(status_code) if status_code.isdigit() else None, body)

        return body

    def create_snap_transaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a Snap transaction; the response carries ``token`` and ``redirect_url``."""
        return self._request("POST", f"{self.snap_url}/transactions", payload)

    def charge(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"{self.core_url}/charge", payload)

    def transaction_status(self, transaction_id: str) -> Dict[str, Any]:
        """Look up an order id or transaction id on the gateway."""
        return self._request("GET", f"{self.core_url}/{transaction_id}/status")


def _error_message(body: Dict[str, Any]) -> Optional[str]:
    messages = body.get("error_messages")
    if isinstance(messages, list) and messages:
        return "; ".join(str(m) for m in messages)
    return body.get("status_message") or body.get("message")


def get_gateway() -> MidtransClient:
    """The gateway client built by the app factory."""
    return current_app.extensions["midtrans"]
