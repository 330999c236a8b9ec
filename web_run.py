from __future__ import annotations

import os
import sys
from pathlib import Path


def _add_src_to_path() -> None:
    src = Path(__file__).resolve().parent / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


def main() -> int:
    _add_src_to_path()

    import uvicorn

    from shopsim.telemetry import setup_logging

    setup_logging(os.environ.get("SHOPSIM_LOG_LEVEL", "INFO"), os.environ.get("SHOPSIM_LOG_FORMAT", "console"))

    host = os.environ.get("SHOPSIM_HOST", "127.0.0.1")
    port = int(os.environ.get("SHOPSIM_PORT", "8000"))
    uvicorn.run("shopsim.webapp:app", host=host, port=port, reload=False, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
