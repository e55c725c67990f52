"""Custom exception hierarchy for the portal API."""

from enum import Enum
from typing import Optional, Dict, Any, List


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    ARTICLE_NOT_FOUND = "ARTICLE_NOT_FOUND"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    UNKNOWN_CATEGORIES = "UNKNOWN_CATEGORIES"
    PROMPT_NOT_FOUND = "PROMPT_NOT_FOUND"
    PROMPT_VERSION_NOT_FOUND = "PROMPT_VERSION_NOT_FOUND"
    EMAIL_TEMPLATE_NOT_FOUND = "EMAIL_TEMPLATE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    SLUG_CONFLICT = "SLUG_CONFLICT"

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PortalException(Exception):
    """
    Base exception for all portal errors.

    Carries a human-readable message, a machine-readable error code, the
    HTTP status to answer with and optional structured details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ArticleNotFoundError(PortalException):
    """Article not found in database."""

    def __init__(self, article_ref: str):
        super().__init__(
            f"Article not found: {article_ref}",
            ErrorCode.ARTICLE_NOT_FOUND,
            status_code=404,
            details={"article": article_ref}
        )


class CategoryNotFoundError(PortalException):
    """Category not found in database."""

    def __init__(self, category_ref: str):
        super().__init__(
            f"Category not found: {category_ref}",
            ErrorCode.CATEGORY_NOT_FOUND,
            status_code=404,
            details={"category": category_ref}
        )


class UnknownCategoriesError(PortalException):
    """One or more category names/ids did not resolve. Nothing was applied."""

    def __init__(self, unknown: List[str]):
        super().__init__(
            f"Unknown categories: {', '.join(unknown)}",
            ErrorCode.UNKNOWN_CATEGORIES,
            status_code=400,
            details={"unknown": list(unknown)}
        )


class PromptNotFoundError(PortalException):
    """AI prompt not found in database."""

    def __init__(self, prompt_ref: str):
        super().__init__(
            f"AI prompt not found: {prompt_ref}",
            ErrorCode.PROMPT_NOT_FOUND,
            status_code=404,
            details={"prompt": prompt_ref}
        )


class PromptVersionNotFoundError(PortalException):
    """AI prompt version not found in database."""

    def __init__(self, version_id: str):
        super().__init__(
            f"Prompt version not found: {version_id}",
            ErrorCode.PROMPT_VERSION_NOT_FOUND,
            status_code=404,
            details={"version_id": version_id}
        )


class EmailTemplateNotFoundError(PortalException):
    """Email template missing or inactive."""

    def __init__(self, template_ref: str):
        super().__init__(
            f"Email template not found: {template_ref}",
            ErrorCode.EMAIL_TEMPLATE_NOT_FOUND,
            status_code=404,
            details={"template": template_ref}
        )


class UserNotFoundError(PortalException):
    """User not found in database."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            ErrorCode.USER_NOT_FOUND,
            status_code=404,
            details={"user_id": user_id}
        )


class ValidationError(PortalException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class SlugConflictError(PortalException):
    """Another row already uses this slug."""

    def __init__(self, slug: str, entity: str = "article"):
        super().__init__(
            f"An {entity} with slug '{slug}' already exists",
            ErrorCode.SLUG_CONFLICT,
            status_code=409,
            details={"slug": slug, "entity": entity}
        )


class AuthenticationError(PortalException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(PortalException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ServiceUnavailableError(PortalException):
    """An external collaborator (LLM, mail provider) is not configured or failed."""

    def __init__(self, service: str, message: Optional[str] = None):
        super().__init__(
            message or f"{service} is not configured",
            ErrorCode.SERVICE_UNAVAILABLE,
            status_code=503,
            details={"service": service}
        )
