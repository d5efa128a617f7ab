import posixpath
from pathlib import Path
from typing import Dict, Iterator, List, Union
from urllib.parse import quote, urlsplit, urlunsplit

from .models import Candidate, ConfigError, ScanTarget

# Characters kept as-is when a word is placed into a URL path
PATH_SAFE = "/:@!$&'()*+,;=~"


def load_list(path: Union[str, Path], skip_trailing_blank: bool = False) -> List[str]:
    """
    Read a newline-separated list (words or extensions), preserving order.

    A file ending in a newline yields a trailing "" entry, which becomes a
    bare-path candidate; pass skip_trailing_blank to drop it. Blank lines
    elsewhere are always kept.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read list {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"list {path} is not valid UTF-8: {e}") from e
    items = text.split("\n")
    if skip_trailing_blank and items and items[-1] == "":
        items.pop()
    return items


def parse_headers(raw: str) -> Dict[str, str]:
    """Parse 'User-Agent : BLAH | Referer : AAAAA' into a header dict."""
    headers: Dict[str, str] = {}
    if not raw or not raw.strip():
        return headers
    for row in raw.split("|"):
        key, sep, val = row.partition(":")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"malformed header {row.strip()!r}, expected 'Name: value'")
        headers[key] = val.strip()
    return headers


def join_candidate(base_url: str, word: str, extension: str) -> str:
    parts = urlsplit(base_url)
    path = posixpath.normpath(parts.path + "/" + quote(word + extension, safe=PATH_SAFE))
    # normpath keeps a leading '//' per POSIX
    if path.startswith("//"):
        path = "/" + path.lstrip("/")
    return urlunsplit(parts._replace(path=path, fragment=""))


def iter_candidates(target: ScanTarget) -> Iterator[Candidate]:
    """
    Yield every (extension, word) combination once: all words for the first
    extension, then all words for the next. Calling again restarts the sequence.
    """
    base = str(target.base_url)
    for ext in target.extensions:
        for word in target.words:
            yield Candidate(word, ext, join_candidate(base, word, ext))


def candidate_count(target: ScanTarget) -> int:
    return len(target.extensions) * len(target.words)
