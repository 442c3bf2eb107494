# floatvid/common/path/safe.py
from __future__ import annotations

from pathlib import Path


def resolve_root(root: Path | str) -> Path:
    """Resolve a working directory root."""
    return Path(root).expanduser().resolve()


def safe_join(root: Path | str, rel: Path | str) -> Path:
    """
    Join 'root' and a request-supplied relative name, ensuring the result stays
    inside 'root'. Raises ValueError if traversal escapes the root.
    """
    r = resolve_root(root)
    p = (r / str(rel)).resolve()
    try:
        p.relative_to(r)
    except ValueError as exc:
        raise ValueError(f"path {p} escapes root {r}") from exc
    return p
