"""timetracker web view - FastAPI dashboard over the session files."""

import logging
import sys

import uvicorn

from ..errors import ConfigError
from ..models import WebConfig

logger = logging.getLogger(__name__)

APP_PATH = "timetracker.web.app:app"


def main() -> int:
    """Entry point for timetracker-web command."""
    try:
        config = WebConfig.from_env()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info("Serving %s on %s:%d", APP_PATH, config.host, config.port)
    uvicorn.run(APP_PATH, host=config.host, port=config.port, reload=config.reload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
