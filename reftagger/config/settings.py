"""
Configuration settings for the reference tagger
"""
import os
from typing import Optional


class Settings:
    """Application settings loaded from environment variables"""

    # Database Configuration
    SUPABASE_URL: Optional[str] = os.getenv("SUPABASE_URL")
    SUPABASE_ANON_KEY: Optional[str] = os.getenv("SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    # Storage Configuration
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "reference-images")
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    THUMBNAIL_MAX_WIDTH: int = int(os.getenv("THUMBNAIL_MAX_WIDTH", "800"))

    # AI Configuration
    ANTHROPIC_API_KEY: Optional[str] = os.getenv("ANTHROPIC_API_KEY")
    ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
    AI_MAX_TOKENS: int = int(os.getenv("AI_MAX_TOKENS", "2000"))
    KEYWORD_MODEL: str = os.getenv("KEYWORD_MODEL", "claude-3-5-haiku-20241022")
    KEYWORD_MAX_TOKENS: int = int(os.getenv("KEYWORD_MAX_TOKENS", "500"))
    USE_ENHANCED_PROMPT: bool = os.getenv("USE_ENHANCED_PROMPT", "false").lower() == "true"

    # Vocabulary
    SEED_DEFAULT_VOCABULARY: bool = os.getenv("SEED_DEFAULT_VOCABULARY", "true").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")

    # Application Info
    APP_TITLE: str = "Reference Tagger API"
    APP_DESCRIPTION: str = "Vocabulary-driven tagging, search and curation of design reference images"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # CORS Configuration
    CORS_ORIGINS: list = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    @classmethod
    def validate_required_settings(cls) -> dict:
        """Validate that required settings are present"""
        missing = []

        if not cls.SUPABASE_URL:
            missing.append("SUPABASE_URL")
        if not cls.SUPABASE_SERVICE_ROLE_KEY:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")

        return {
            "valid": len(missing) == 0,
            "missing": missing,
            "supabase_configured": bool(cls.SUPABASE_URL and cls.SUPABASE_SERVICE_ROLE_KEY),
            "ai_configured": bool(cls.ANTHROPIC_API_KEY),
        }


# Global settings instance
settings = Settings()
