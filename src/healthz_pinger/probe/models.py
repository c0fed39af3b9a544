from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class RequestConfig:
    """Outbound request as it was configured, logged on every probe."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)

    def redacted(self) -> Dict[str, object]:
        headers = {
            k: ("Bearer ***" if k.lower() == "authorization" else v)
            for k, v in self.headers.items()
        }
        return {"method": self.method, "url": self.url, "headers": headers}


@dataclass(frozen=True)
class Success:
    status_code: int
    body_preview: str


@dataclass(frozen=True)
class HttpError:
    status_code: int
    body: str
    # Name/value pairs in arrival order; repeated headers such as Set-Cookie are all kept
    headers: Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class NoResponse:
    request_info: str


@dataclass(frozen=True)
class SetupError:
    message: str


Outcome = Union[Success, HttpError, NoResponse, SetupError]

_KINDS = {
    Success: "success",
    HttpError: "http_error",
    NoResponse: "no_response",
    SetupError: "setup_error",
}


@dataclass(frozen=True)
class ProbeResult:
    timestamp: datetime
    request: RequestConfig
    outcome: Outcome

    @property
    def kind(self) -> str:
        return _KINDS[type(self.outcome)]

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.outcome, "status_code", None)
