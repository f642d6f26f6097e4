"""AcquiSight server entry point."""

import logging

import uvicorn

from .config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the API server."""
    logger.info("AcquiSight - Government Contract Intelligence")
    logger.info(f"Server running at: http://localhost:{settings.PORT}")
    try:
        uvicorn.run(
            "acquisight.api:app",
            host=settings.HOST,
            port=settings.PORT,
            log_config=None,
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user.")
    except Exception:
        logger.exception("Server failed")
        raise


if __name__ == "__main__":
    main()
