import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

import aiohttp

from healthz_pinger.probe.models import (
    HttpError,
    NoResponse,
    ProbeResult,
    RequestConfig,
    SetupError,
    Success,
)

PREVIEW_CHARS = 100


def _serialize_body(text: str) -> str:
    """Compact JSON bodies the way they were sent; anything else stays as text."""
    try:
        return json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False)
    except (ValueError, RecursionError):
        # RecursionError: valid but too deeply nested to decode
        return text


class HealthProbe:
    def __init__(
        self,
        api_key: str = "",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        One-shot HTTP GET health probe.

        Every call to `run_once` issues exactly one request and returns a
        `ProbeResult`; failures are classified into an outcome instead of
        being raised.

        Parameters
        ----------
        api_key : str, optional
            Sent as a bearer token when non-empty. No headers are sent
            otherwise.

        session : aiohttp.ClientSession, optional
            Borrowed session. When omitted the probe creates its own on first
            use and closes it in `close()`.
        """
        self.api_key = api_key
        self._session = session
        self._owns_session = session is None
        self.logger = logging.getLogger(self.__class__.__name__)

    async def __aenter__(self) -> "HealthProbe":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ---------- PUBLIC API ----------
    async def run_once(self, endpoint_url: str) -> ProbeResult:
        """Hit `endpoint_url` once and classify the result. Never raises."""
        timestamp = datetime.now(timezone.utc)
        request = RequestConfig(method="GET", url=endpoint_url, headers=self._headers())
        self.logger.info("[%s] Attempting to hit API endpoint: %s", timestamp.isoformat(), endpoint_url)

        try:
            session = self._get_session()
            async with session.get(endpoint_url, headers=request.headers) as response:
                body = await response.text(errors="replace")
                status = response.status
                response_headers = tuple(response.headers.items())
        except aiohttp.InvalidURL as exc:
            outcome = SetupError(message=f"Invalid URL: {exc}")
            self.logger.error("Error setting up API request: %s", outcome.message)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            outcome = NoResponse(
                request_info=f"{request.method} {request.url} ({type(exc).__name__}: {exc})"
            )
            self.logger.error("API call failed! No response received.")
            self.logger.error("Error request: %s", outcome.request_info)
        except Exception as exc:
            outcome = SetupError(message=str(exc) or type(exc).__name__)
            self.logger.error("Error setting up API request: %s", outcome.message)
        else:
            if 200 <= status < 300:
                outcome = Success(
                    status_code=status,
                    body_preview=_serialize_body(body)[:PREVIEW_CHARS],
                )
                self.logger.info("API call successful! Status: %d", status)
                self.logger.info("Response data (first %d chars): %s", PREVIEW_CHARS, outcome.body_preview)
            else:
                outcome = HttpError(status_code=status, body=body, headers=response_headers)
                self.logger.error("API call failed! Status: %d", status)
                self.logger.error("Error data: %s", body)
                self.logger.error("Error headers: %s", list(response_headers))

        # Request config is logged on every path
        level = logging.INFO if isinstance(outcome, Success) else logging.ERROR
        self.logger.log(level, "Request config: %s", request.redacted())

        return ProbeResult(timestamp=timestamp, request=request, outcome=outcome)
