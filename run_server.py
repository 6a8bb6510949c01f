import os

import uvicorn

from utils.logging_utils import get_tagged_logger, setup_logging
from weather_dashboard.config import settings

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="weather_dashboard")
    if not settings.api_key:
        logger.warning("DASHBOARD_API_KEY is not set; upstream weather calls will fail")

    uvicorn.run(
        "weather_dashboard.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.getenv("PORT", 5000)),
        reload=False,
    )
