import os

import uvicorn

from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="weather_advisor")
    port = int(os.getenv("PORT", 4000))
    logger.info("Starting weather advisor on port %d", port)

    uvicorn.run(
        "advisor.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )
