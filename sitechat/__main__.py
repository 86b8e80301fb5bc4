import sys

import uvicorn

from sitechat.config import settings
from sitechat.logging_config import get_logger, setup_logging

logger = get_logger("cli")


def main() -> int:
    setup_logging(settings.log_level)
    missing = settings.missing_required()
    if missing:
        logger.error("Missing required settings", extra={"context": {"missing": missing}})
        return 1

    uvicorn.run("sitechat.main:app", host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
