# floatvid/main.py
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

from floatvid import __version__
from floatvid.common.logging import configure_logging, get_logger
from floatvid.common.settings import get_settings
from floatvid.domain.enums.playback_mode import PlaybackMode
from floatvid.domain.enums.stream_container import StreamContainer
from floatvid.domain.errors import PlaybackError
from floatvid.services.playback.orchestrator import PlaybackOrchestrator
from floatvid.services.streaming.server import StreamingServer

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="floatvid",
        description="Probe a local video, then print how to play it (and serve a live transcode when needed).",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("path", help="Video file to play")
    parser.add_argument(
        "--container",
        choices=[c.value for c in StreamContainer],
        default=None,
        help="Framing for transcoded streams (default: from settings, fmp4)",
    )
    parser.add_argument("--port", type=int, default=None, help="Streaming server port (default: 8888)")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ... (default: from settings)")
    return parser


async def run(path: str, orchestrator: PlaybackOrchestrator) -> int:
    try:
        descriptor = await orchestrator.play_file(path)
    except PlaybackError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(descriptor.to_payload()), flush=True)
    if descriptor.mode is not PlaybackMode.stream:
        return 0

    logger.info("Serving %s until interrupted (Ctrl-C)", descriptor.video_source)
    try:
        await orchestrator.server.wait_closed()
    finally:
        await orchestrator.shutdown()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = get_settings()
    configure_logging(args.log_level or cfg.log_level)

    update = {}
    if args.container:
        update["container"] = StreamContainer(args.container)
    if args.port is not None:
        update["port"] = args.port
    streaming = cfg.streaming.model_copy(update=update) if update else cfg.streaming

    orchestrator = PlaybackOrchestrator(server=StreamingServer(cfg=streaming))
    try:
        return asyncio.run(run(args.path, orchestrator))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
