"""
Gemini REST transport shared by every pipeline step.

- generateContent: image transforms and design analysis (vision + image out)
- predictLongRunning / operations: Veo video generation jobs
"""

import base64
import logging
from io import BytesIO
from typing import Optional

import httpx
from PIL import Image

from .config import DEFAULT_API_BASE

logger = logging.getLogger(__name__)


class GeminiAPIError(Exception):
    """Raised when the Gemini API answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Gemini API error {status_code}: {body[:500]}")


def _json_body(resp: httpx.Response) -> dict:
    """Decode a reply body; a non-JSON body is reported as an API error."""
    if resp.status_code != 200:
        raise GeminiAPIError(resp.status_code, resp.text)
    try:
        return resp.json()
    except ValueError as e:
        raise GeminiAPIError(resp.status_code, f"Invalid JSON reply: {resp.text}") from e


class GeminiClient:
    """
    Thin async wrapper around the Generative Language REST API.

    A fresh ``httpx.AsyncClient`` is opened per call; ``transport`` lets
    callers swap in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.timeout,
            transport=self._transport,
        )

    async def _post(self, url: str, body: dict) -> dict:
        async with self._client() as client:
            resp = await client.post(url, params={"key": self.api_key}, json=body)
        return _json_body(resp)

    async def generate_content(
        self, model: str, parts: list, config: Optional[dict] = None
    ) -> dict:
        """Call the generateContent endpoint."""
        body: dict = {"contents": [{"parts": parts}]}
        if config:
            body["generationConfig"] = config
        return await self._post(f"{self.api_base}/models/{model}:generateContent", body)

    async def predict_long_running(
        self, model: str, instances: list, parameters: Optional[dict] = None
    ) -> dict:
        """Start a long-running prediction; returns the operation resource."""
        body: dict = {"instances": instances}
        if parameters:
            body["parameters"] = parameters
        return await self._post(f"{self.api_base}/models/{model}:predictLongRunning", body)

    async def get_operation(self, name: str) -> dict:
        """Fetch the current state of a long-running operation."""
        async with self._client(timeout=30) as client:
            resp = await client.get(f"{self.api_base}/{name}", params={"key": self.api_key})
        return _json_body(resp)


# ── Reply helpers ────────────────────────────────────────────────────────────

def response_parts(result: dict) -> list:
    """Content parts of the first candidate, or an empty list."""
    candidates = result.get("candidates") or []
    if not candidates:
        return []
    content = candidates[0].get("content") or {}
    return content.get("parts") or []


def response_text(result: dict) -> str:
    """Concatenate the text parts of the first candidate."""
    return "".join(part.get("text", "") for part in response_parts(result))


def first_inline_image(result: dict) -> Optional[dict]:
    """Return ``{"mimeType", "data"}`` of the first inline image part."""
    for part in response_parts(result):
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            return {
                "mimeType": inline.get("mimeType") or inline.get("mime_type") or "image/png",
                "data": inline["data"],
            }
    return None


# ── Upload decoding ──────────────────────────────────────────────────────────

_PIL_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


def split_data_url(image: str) -> tuple[str, str]:
    """
    Split an uploaded image into ``(mime_type, base64_data)``.

    Accepts a ``data:<mime>;base64,<data>`` URL or raw base64; raw payloads
    are sniffed with Pillow. Raises ValueError for anything undecodable.
    """
    image = image.strip()
    if image.startswith("data:"):
        header, b64data = image.split(",", 1)
        mime = header.split(":")[1].split(";")[0] or "image/png"
        try:
            base64.b64decode(b64data, validate=True)
        except ValueError as e:
            raise ValueError(f"Uploaded image is not valid base64: {e}") from e
        return mime, b64data

    try:
        raw = base64.b64decode(image, validate=True)
        with Image.open(BytesIO(raw)) as img:
            fmt = img.format or "PNG"
    except (ValueError, OSError) as e:
        raise ValueError(f"Uploaded image is not a decodable image: {e}") from e
    return _PIL_MIME.get(fmt, "image/png"), image
