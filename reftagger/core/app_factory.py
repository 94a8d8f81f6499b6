"""
Application factory for creating FastAPI app with proper service initialization
"""
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reftagger.config.settings import settings
from reftagger.core.dependencies import (
    check_services_ready,
    get_vocabulary_config_service,
    set_correction_service,
    set_database_service,
    set_duplicate_service,
    set_image_service,
    set_keyword_service,
    set_search_service,
    set_settings_service,
    set_stats_service,
    set_storage_service,
    set_suggestion_service,
    set_tag_usage_service,
    set_tag_vocabulary_service,
    set_vocabulary_config_service,
)
from reftagger.services.correction_service import CorrectionService
from reftagger.services.database_service import DatabaseService
from reftagger.services.duplicate_service import DuplicateService
from reftagger.services.image_service import ImageService
from reftagger.services.keyword_service import KeywordService
from reftagger.services.search_service import SearchService
from reftagger.services.settings_service import SettingsService
from reftagger.services.stats_service import StatsService
from reftagger.services.storage_service import StorageService
from reftagger.services.suggestion_service import SuggestionService
from reftagger.services.tag_usage_service import TagUsageService
from reftagger.services.tag_vocabulary_service import TagVocabularyService
from reftagger.services.vocabulary_config_service import VocabularyConfigService
from reftagger.utils.logging import configure_logging, get_logger

# Configure logging first
configure_logging()
logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title=settings.APP_TITLE,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    return app


def wire_services(supabase, anthropic_client=None) -> dict:
    """Build every service around one Supabase client and register them"""
    database_service = DatabaseService(supabase)
    storage_service = StorageService(supabase, settings.STORAGE_BUCKET)
    settings_service = SettingsService(supabase)
    config_service = VocabularyConfigService(supabase, database_service, storage_service)
    tag_usage_service = TagUsageService(supabase)
    correction_service = CorrectionService(supabase, config_service, settings_service)

    services = {
        "database": database_service,
        "storage": storage_service,
        "settings": settings_service,
        "vocabulary_config": config_service,
        "tag_usage": tag_usage_service,
        "tag_vocabulary": TagVocabularyService(supabase, config_service),
        "correction": correction_service,
        "image": ImageService(supabase, storage_service, config_service, tag_usage_service, correction_service),
        "duplicate": DuplicateService(supabase),
        "search": SearchService(supabase, config_service),
        "suggestion": SuggestionService(anthropic_client, settings_service, correction_service),
        "stats": StatsService(supabase),
        "keyword": KeywordService(anthropic_client),
    }

    set_database_service(services["database"])
    set_storage_service(services["storage"])
    set_settings_service(services["settings"])
    set_vocabulary_config_service(services["vocabulary_config"])
    set_tag_usage_service(services["tag_usage"])
    set_tag_vocabulary_service(services["tag_vocabulary"])
    set_correction_service(services["correction"])
    set_image_service(services["image"])
    set_duplicate_service(services["duplicate"])
    set_search_service(services["search"])
    set_suggestion_service(services["suggestion"])
    set_stats_service(services["stats"])
    set_keyword_service(services["keyword"])
    return services


def initialize_services() -> dict:
    """Initialize all application services"""
    services_status = {}

    anthropic_client = None
    try:
        from anthropic import AsyncAnthropic

        if settings.ANTHROPIC_API_KEY:
            anthropic_client = AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)
            services_status["ai"] = "initialized"
            logger.info(f"✅ Anthropic client initialized (model: {settings.ANTHROPIC_MODEL})")
        else:
            services_status["ai"] = "missing_config"
            logger.warning("⚠️ Anthropic client not initialized - ANTHROPIC_API_KEY missing")
    except Exception as e:
        services_status["ai"] = f"error: {e}"
        logger.error(f"❌ Anthropic client initialization failed: {e}")

    try:
        from supabase import create_client

        if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY:
            supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
            wire_services(supabase, anthropic_client)
            services_status["database"] = "initialized"
            logger.info("✅ Database services initialized")
        else:
            services_status["database"] = "missing_config"
            logger.warning("⚠️ Database services not initialized - missing config")
    except Exception as e:
        services_status["database"] = f"error: {e}"
        logger.error(f"❌ Database services initialization failed: {e}")

    return services_status


def register_routers(app: FastAPI):
    """Register every API router"""
    from reftagger.routers.admin import router as admin_router
    from reftagger.routers.duplicates import router as duplicates_router
    from reftagger.routers.images import router as images_router
    from reftagger.routers.keywords import router as keywords_router
    from reftagger.routers.search import router as search_router
    from reftagger.routers.stats import router as stats_router
    from reftagger.routers.suggestions import router as suggestions_router
    from reftagger.routers.vocabulary import router as vocabulary_router
    from reftagger.routers.vocabulary_config import router as vocabulary_config_router

    routers = [
        (vocabulary_config_router, "vocabulary config"),
        (vocabulary_router, "vocabulary"),
        (images_router, "images"),
        (duplicates_router, "duplicates"),
        (search_router, "search"),
        (keywords_router, "keywords"),
        (suggestions_router, "suggestions"),
        (stats_router, "stats"),
        (admin_router, "admin"),
    ]
    for router, name in routers:
        app.include_router(router)
        logger.info(f"✅ Registered {name} router")


def add_health_endpoints(app: FastAPI):
    """Add basic health check and status endpoints"""

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_TITLE,
            "version": settings.APP_VERSION,
            "status": "running",
            "health_check": "/health",
        }

    @app.get("/health")
    async def health_check():
        """Always 200; reports which services are ready"""
        try:
            services = check_services_ready()
            ready_count = sum(1 for status in services.values() if status)
            return {
                "status": "healthy" if ready_count > 0 else "starting",
                "services": services,
                "ready": f"{ready_count}/{len(services)}",
                "version": settings.APP_VERSION,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        except Exception as e:
            logger.error(f"Health check error: {e}")
            return {
                "status": "minimal",
                "error": str(e),
                "version": settings.APP_VERSION,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

    @app.get("/status")
    async def app_status():
        """Detailed application status"""
        return {
            "application": settings.APP_TITLE,
            "version": settings.APP_VERSION,
            "services": check_services_ready(),
            "configuration": settings.validate_required_settings(),
            "environment": settings.ENVIRONMENT,
        }


def create_complete_app() -> FastAPI:
    """Create the application, initialize services and register all routers"""
    logger.info("🚀 Creating Reference Tagger application")

    app = create_app()
    services_status = initialize_services()
    logger.info(f"📊 Services status: {services_status}")
    app.state.services_status = services_status

    add_health_endpoints(app)
    register_routers(app)

    @app.on_event("startup")
    async def seed_vocabulary():
        config_service = get_vocabulary_config_service()
        if not settings.SEED_DEFAULT_VOCABULARY or config_service is None:
            return
        try:
            await config_service.seed_default_config()
        except Exception as e:
            logger.error(f"❌ Failed to seed default vocabulary: {e}")

    logger.info("✅ Complete application created successfully")
    return app
