# floatvid/services/subtitles/sidecar.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import aiofiles.os

from floatvid.common.settings import get_settings


async def find_sidecar_subtitle(video_path: Path | str, extensions: Iterable[str] | None = None) -> Optional[Path]:
    """
    First existing "<video base name><ext>" next to the video, trying
    `extensions` in order (lower then upper case). None when nothing matches.
    """
    video = Path(video_path)
    exts = list(extensions) if extensions is not None else get_settings().subtitles.extensions
    for ext in exts:
        for candidate_ext in dict.fromkeys((ext.lower(), ext.upper())):
            candidate = video.with_suffix(candidate_ext)
            if candidate != video and await aiofiles.os.path.isfile(candidate):
                return candidate
    return None
