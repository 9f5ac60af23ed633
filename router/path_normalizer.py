import re
from typing import Optional

_TEMPLATE_SEGMENT = re.compile(r"{([^{}]+)}")


def _canonical(path: str) -> str:
    path = "/" + path.lstrip("/")
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def normalize_path(raw_path: Optional[str], base_path: Optional[str] = None) -> str:
    """
    Canonicalize a request or catalog path for key comparison.

    Ensures one leading slash, drops trailing slashes (``/`` stays ``/``) and
    prefixes ``base_path`` unless the path already lives under it. Query
    strings and percent-encoding are left untouched; callers strip queries
    before normalizing.
    """
    path = _canonical(raw_path or "")

    if base_path:
        base = _canonical(base_path)
        if base != "/" and path != base and not path.startswith(base + "/"):
            path = base if path == "/" else base + path

    return path


def is_template(path: str) -> bool:
    return bool(_TEMPLATE_SEGMENT.search(path))


def path_segments(path: str):
    return [segment for segment in path.split("/") if segment]


def first_segment(path: str) -> Optional[str]:
    segments = path_segments(path)
    return segments[0] if segments else None
