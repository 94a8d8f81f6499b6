"""
Reference Tagger - main application
"""
import os

from reftagger.core.app_factory import create_complete_app
from reftagger.core.dependencies import check_services_ready
from reftagger.utils.logging import get_logger

logger = get_logger(__name__)

# Create the application instance
app = create_complete_app()


@app.on_event("startup")
async def startup_event():
    """Log application startup status"""
    services = check_services_ready()
    logger.info("🚀 Reference Tagger API")
    logger.info(f"📊 Services Status: {services}")

    ready_services = sum(1 for status in services.values() if status)
    logger.info(f"✅ Application started successfully ({ready_services}/{len(services)} services ready)")


def run():
    import uvicorn

    port = int(os.environ.get("PORT", 8000))
    logger.info(f"🚀 Starting Reference Tagger on port {port}")
    uvicorn.run(
        "reftagger.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    run()
