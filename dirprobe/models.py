from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError
from typing import Dict, List, NamedTuple, Optional, Tuple

from .analyzer import is_match

HTTP_TIMEOUT_SECONDS = 10


class ConfigError(ValueError):
    """Invalid scan input, detected before any network activity."""


class ScanTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: HttpUrl
    extensions: Tuple[str, ...]
    words: Tuple[str, ...]
    headers: Dict[str, str] = {}
    concurrency: int = Field(1, ge=1)
    timeout_seconds: float = HTTP_TIMEOUT_SECONDS
    verify_tls: bool = False  # off: self-signed targets must still be probed
    follow_redirects: bool = True


class ScanRequest(BaseModel):
    url: HttpUrl
    words: List[str]
    extensions: List[str] = [""]
    headers: str = ""
    concurrency: int = 1
    follow_redirects: bool = True
    verify_tls: bool = False


class Candidate(NamedTuple):
    word: str
    extension: str
    url: str


class ProbeOutcome(BaseModel):
    url: str
    status: Optional[int] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def matched(self) -> bool:
        return not self.failed and is_match(self.status)


class ScanStats(BaseModel):
    total: int = 0
    matched: int = 0
    skipped: int = 0
    failed: int = 0


def build_target(url: str, words, extensions, headers=None, concurrency: int = 1, **options) -> ScanTarget:
    """Validate raw inputs into a ScanTarget, raising ConfigError on bad input."""
    try:
        return ScanTarget(
            base_url=url,
            words=tuple(words),
            extensions=tuple(extensions),
            headers=dict(headers or {}),
            concurrency=concurrency,
            **options,
        )
    except ValidationError as e:
        errs = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise ConfigError(errs) from e
