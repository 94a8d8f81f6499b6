"""
Dependency injection for services
"""
from typing import Optional

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
from reftagger.utils.logging import get_logger

logger = get_logger(__name__)

# Global service instances
_database_service: Optional[DatabaseService] = None
_storage_service: Optional[StorageService] = None
_settings_service: Optional[SettingsService] = None
_vocabulary_config_service: Optional[VocabularyConfigService] = None
_tag_usage_service: Optional[TagUsageService] = None
_tag_vocabulary_service: Optional[TagVocabularyService] = None
_correction_service: Optional[CorrectionService] = None
_image_service: Optional[ImageService] = None
_duplicate_service: Optional[DuplicateService] = None
_search_service: Optional[SearchService] = None
_suggestion_service: Optional[SuggestionService] = None
_stats_service: Optional[StatsService] = None
_keyword_service: Optional[KeywordService] = None


def set_database_service(service: Optional[DatabaseService]):
    """Set the global database service instance"""
    global _database_service
    _database_service = service
    logger.info("✅ Database service registered")


def set_storage_service(service: Optional[StorageService]):
    """Set the global storage service instance"""
    global _storage_service
    _storage_service = service
    logger.info(f"✅ Storage service registered (bucket: {service.bucket_name if service else None})")


def set_settings_service(service: Optional[SettingsService]):
    global _settings_service
    _settings_service = service
    logger.info("✅ Settings service registered")


def set_vocabulary_config_service(service: Optional[VocabularyConfigService]):
    global _vocabulary_config_service
    _vocabulary_config_service = service
    logger.info("✅ Vocabulary config service registered")


def set_tag_usage_service(service: Optional[TagUsageService]):
    global _tag_usage_service
    _tag_usage_service = service
    logger.info("✅ Tag usage service registered")


def set_tag_vocabulary_service(service: Optional[TagVocabularyService]):
    global _tag_vocabulary_service
    _tag_vocabulary_service = service
    logger.info("✅ Tag vocabulary service registered")


def set_correction_service(service: Optional[CorrectionService]):
    global _correction_service
    _correction_service = service
    logger.info("✅ Correction service registered")


def set_image_service(service: Optional[ImageService]):
    global _image_service
    _image_service = service
    logger.info("✅ Image service registered")


def set_duplicate_service(service: Optional[DuplicateService]):
    global _duplicate_service
    _duplicate_service = service
    logger.info("✅ Duplicate service registered")


def set_search_service(service: Optional[SearchService]):
    global _search_service
    _search_service = service
    logger.info("✅ Search service registered")


def set_suggestion_service(service: Optional[SuggestionService]):
    global _suggestion_service
    _suggestion_service = service
    logger.info("✅ Suggestion service registered")


def set_stats_service(service: Optional[StatsService]):
    global _stats_service
    _stats_service = service
    logger.info("✅ Stats service registered")


def set_keyword_service(service: Optional[KeywordService]):
    global _keyword_service
    _keyword_service = service
    logger.info("✅ Keyword service registered")


# FastAPI Dependency functions (for use with Depends())
def get_database_service() -> Optional[DatabaseService]:
    """Get database service instance for FastAPI dependency injection"""
    return _database_service


def get_storage_service() -> Optional[StorageService]:
    return _storage_service


def get_settings_service() -> Optional[SettingsService]:
    return _settings_service


def get_vocabulary_config_service() -> Optional[VocabularyConfigService]:
    return _vocabulary_config_service


def get_tag_usage_service() -> Optional[TagUsageService]:
    return _tag_usage_service


def get_tag_vocabulary_service() -> Optional[TagVocabularyService]:
    return _tag_vocabulary_service


def get_correction_service() -> Optional[CorrectionService]:
    return _correction_service


def get_image_service() -> Optional[ImageService]:
    return _image_service


def get_duplicate_service() -> Optional[DuplicateService]:
    return _duplicate_service


def get_search_service() -> Optional[SearchService]:
    return _search_service


def get_suggestion_service() -> Optional[SuggestionService]:
    return _suggestion_service


def get_stats_service() -> Optional[StatsService]:
    return _stats_service


def get_keyword_service() -> Optional[KeywordService]:
    return _keyword_service


def check_services_ready() -> dict:
    """Check which services are ready"""
    return {
        "database_service": _database_service is not None,
        "storage_service": _storage_service is not None,
        "vocabulary_config_service": _vocabulary_config_service is not None,
        "tag_vocabulary_service": _tag_vocabulary_service is not None,
        "image_service": _image_service is not None,
        "correction_service": _correction_service is not None,
        "duplicate_service": _duplicate_service is not None,
        "search_service": _search_service is not None,
        "suggestion_service": _suggestion_service is not None and _suggestion_service.client is not None,
        "stats_service": _stats_service is not None,
        "keyword_service": _keyword_service is not None and _keyword_service.client is not None,
    }
