"""Run the trainlog API under Uvicorn.

Flags override the HOST / PORT / UVICORN_WORKERS / UVICORN_LOG_LEVEL
environment variables, which in turn override the defaults below.
"""

from __future__ import annotations

import argparse
import os
from typing import List, Optional

import uvicorn


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the trainlog API")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    parser.add_argument("--workers", type=int, default=int(os.getenv("UVICORN_WORKERS", "2")))
    parser.add_argument("--log-level", default=os.getenv("UVICORN_LOG_LEVEL", "info"))
    parser.add_argument("--reload", action="store_true", help="auto-reload on code changes (single worker)")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    uvicorn.run(
        "trainlog.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        # uvicorn refuses workers > 1 together with reload
        workers=1 if args.reload else args.workers,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
