"""
User-facing error messages and translation of backend errors into them
"""
from typing import Any


class ErrorMessages:
    """Catalogue of messages returned to API clients"""

    # Database Errors
    DATABASE_ERROR = "Database operation failed. Please try again or contact support if the issue persists."
    DATABASE_CONNECTION_FAILED = "Could not connect to the database. Please check your connection and try again."

    # Vocabulary & Tag Management
    CATEGORY_DUPLICATE_KEY = "This category key already exists. Please choose a unique key."
    CATEGORY_DUPLICATE_PATH = "This storage path is already in use by another category. Please use a unique path."
    CATEGORY_INVALID_KEY = "Invalid category key. Use only lowercase letters and underscores."
    CATEGORY_REQUIRED_FIELDS = "Please fill in all required fields (key, label, storage path, and storage type)."
    CATEGORY_NOT_FOUND = "Category not found in the active vocabulary configuration."
    CATEGORY_DELETE_FAILED = "Failed to delete category. Make sure no tags are using this category."

    TAG_DUPLICATE_VALUE = "This tag already exists in this category. Please use a unique tag value."
    TAG_NOT_FOUND = "Tag not found."
    TAG_IN_USE = "This tag is used by reference images and cannot be deleted. Archive it instead."
    TAG_MERGE_FAILED = "Failed to merge tags. Please try again."
    TAG_DELETE_FAILED = "Failed to delete tag. This tag may be in use by reference images."
    TAG_ADD_FAILED = "Failed to add tag. Please check your input and try again."
    TAG_UPDATE_FAILED = "Failed to update tag. Please try again."

    # Image Upload & Processing
    IMAGE_NOT_FOUND = "Image not found."
    IMAGE_UPLOAD_FAILED = "Failed to upload image. Please check the file and try again."
    IMAGE_TOO_LARGE = "Image file is too large. Please upload an image smaller than 10MB."
    IMAGE_INVALID_FORMAT = "Invalid image format. Please upload JPG, PNG, or WEBP files only."
    IMAGE_DELETE_FAILED = "Failed to delete image. Please try again."
    IMAGE_UPDATE_FAILED = "Failed to update image tags. Please try again."
    IMAGE_FETCH_FAILED = "Failed to load images. Please refresh the page."

    # AI & Suggestions
    AI_SUGGESTION_FAILED = "AI tag suggestion failed. You can still tag images manually."
    AI_API_ERROR = "Could not connect to AI service. Please check your API key configuration."
    AI_RATE_LIMIT = "Too many AI requests. Please wait a moment and try again."

    # Vocabulary Config
    VOCAB_CONFIG_LOAD_FAILED = "Failed to load vocabulary configuration. Please refresh the page."
    VOCAB_CONFIG_SAVE_FAILED = "Failed to save vocabulary configuration. Please try again."
    VOCAB_CONFIG_VALIDATION_FAILED = (
        "Configuration validation failed. Please ensure all categories have required fields "
        "(key, label, storage_type, storage_path)."
    )
    VOCAB_CONFIG_DUPLICATE_DETECTED = "Duplicate category keys or storage paths detected. Each must be unique."
    VOCAB_CONFIG_MISSING = "No active vocabulary configuration found"

    # Network & Generic
    NETWORK_ERROR = "Network connection failed. Please check your internet connection and try again."
    AUTH_UNAUTHORIZED = "You do not have permission to perform this action."
    UNKNOWN_ERROR = "An unexpected error occurred. Please try again."

    # Bulk Operations
    BULK_UPDATE_FAILED = "Failed to update selected items. Please try again."

    # Dashboard & Admin
    DELETE_ALL_IMAGES_FAILED = "Failed to delete all images. Some images may have been deleted."
    RESET_VOCABULARY_FAILED = "Failed to reset vocabulary to defaults. Please try again."
    EXPORT_DATA_FAILED = "Failed to export data. Please try again."
    DUPLICATE_DETECTION_FAILED = "Failed to scan for duplicates. Please try again."
    SEARCH_FAILED = "Failed to search references. Please try again."

    @staticmethod
    def required_field(field: str) -> str:
        return f"{field} is required."

    @staticmethod
    def too_long(field: str, max_length: int) -> str:
        return f"{field} must be {max_length} characters or less."


# PostgreSQL error codes mapped to user-friendly messages
POSTGRES_ERROR_CODES = {
    "23505": ErrorMessages.TAG_DUPLICATE_VALUE,  # unique_violation
    "23503": "This item cannot be deleted because it is referenced by other data.",  # foreign_key_violation
    "23502": "Required database field is missing.",  # not_null_violation
    "42P01": "Database table not found. Please contact support.",  # undefined_table
    "42703": "Database column not found. Please contact support.",  # undefined_column
    "08006": ErrorMessages.DATABASE_CONNECTION_FAILED,  # connection_failure
    "08001": ErrorMessages.DATABASE_CONNECTION_FAILED,
}


def _error_code(error: Any):
    code = getattr(error, "code", None)
    if code is None and isinstance(error, dict):
        code = error.get("code")
    return code


def get_error_message(error: Any, fallback: str = ErrorMessages.UNKNOWN_ERROR) -> str:
    """Get a user-friendly message from an exception, postgrest error or string"""
    if not error:
        return fallback

    code = _error_code(error)
    if code in POSTGRES_ERROR_CODES:
        return POSTGRES_ERROR_CODES[code]

    if isinstance(error, Exception):
        if is_network_error(error):
            return ErrorMessages.NETWORK_ERROR
        if is_auth_error(error):
            return ErrorMessages.AUTH_UNAUTHORIZED
        message = str(error)
        if message and message != "Unknown error":
            return message

    if isinstance(error, str) and error:
        return error

    return fallback


def is_network_error(error: Any) -> bool:
    if isinstance(error, Exception):
        message = str(error).lower()
        return "network" in message or "fetch" in message or "connection" in message
    return False


def is_auth_error(error: Any) -> bool:
    if isinstance(error, Exception):
        message = str(error).lower()
        if "auth" in message or "unauthorized" in message or "session" in message:
            return True
    return _error_code(error) in ("PGRST301", "401", "403")
