from __future__ import annotations

import logging

import uvicorn

from stereoscope.config import get_settings


def main() -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger = logging.getLogger("stereoscope.serve")
    logger.info("serve_starting host=%s port=%s", settings.host, settings.port)

    uvicorn.run(
        "stereoscope.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    logger.info("serve_stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
