"""
HTTP recognition engine.

Posts the normalized image to an OCR service and expects a JSON body
with the recognized text:

    POST <url>            (body: PNG bytes)
    200 {"text": "..."}
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import RecognitionError
from .base import RecognitionEngine

logger = logging.getLogger(__name__)


class RemoteOCREngine(RecognitionEngine):
    """
    OCR over HTTP.

    Features:
    - Bearer token auth (optional)
    - Automatic retry with backoff for transient failures
    - Session closed on terminate()
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
    ):
        """
        Initialize remote OCR engine.

        Args:
            url: Recognition endpoint (e.g., "http://ocr.local:8884/recognize")
            token: Optional API token
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
            backoff_factor: Backoff factor for retries
        """
        self.url = url
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    @property
    def name(self) -> str:
        return "remote"

    def recognize(self, image_bytes: bytes) -> str:
        try:
            response = self.session.post(
                self.url,
                data=image_bytes,
                headers={"Content-Type": "image/png"},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise RecognitionError(f"OCR request timed out: {e}", engine=self.name) from e
        except requests.exceptions.ConnectionError as e:
            raise RecognitionError(
                f"Failed to connect to OCR service at {self.url}: {e}", engine=self.name
            ) from e
        except requests.exceptions.RequestException as e:
            raise RecognitionError(f"OCR request failed: {e}", engine=self.name) from e

        if not response.ok:
            raise RecognitionError(
                f"OCR service error {response.status_code}: {response.reason}",
                engine=self.name,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RecognitionError(f"OCR service returned invalid JSON: {e}", engine=self.name) from e

        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise RecognitionError("OCR response has no 'text' field", engine=self.name)
        return text

    def terminate(self) -> None:
        self.session.close()
