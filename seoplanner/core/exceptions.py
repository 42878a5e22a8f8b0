"""Custom exception classes for the application."""

from typing import Any


class SEOPlannerError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Input Errors
class InvalidInputError(SEOPlannerError):
    """Caller-supplied input failed validation."""

    pass


# Lookup Errors
class WebsiteNotFoundError(SEOPlannerError):
    """Website not found."""

    def __init__(self, website_id: str) -> None:
        super().__init__(f"Website not found: {website_id}")


class ContentPlanNotFoundError(SEOPlannerError):
    """Calendar assignment not found."""

    def __init__(self, content_plan_id: str) -> None:
        super().__init__(f"Content plan not found: {content_plan_id}")


# External API Errors
class ExternalAPIError(SEOPlannerError):
    """Error calling external API."""

    def __init__(self, api_name: str, message: str) -> None:
        self.api_name = api_name
        super().__init__(f"{api_name} API error: {message}")


class RateLimitExceededError(ExternalAPIError):
    """Rate limit exceeded for external API."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "Rate limit exceeded")


class APIKeyMissingError(ExternalAPIError):
    """API key not configured."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "API key not configured")


# Keyword pool / calendar Errors
class NoQualifyingKeywordsError(SEOPlannerError):
    """Research finished but no keyword passed the difficulty filter."""

    def __init__(self, threshold: int, researched: int = 0) -> None:
        super().__init__(
            f"No keywords found with difficulty < {threshold}. Try different seed keywords.",
            details={
                "reason": "no_qualifying_keywords",
                "difficulty_threshold": threshold,
                "keywords_researched": researched,
            },
        )


class NoAvailableKeywordsError(SEOPlannerError):
    """No unused pool keywords left to allocate to calendar dates."""

    def __init__(self, website_id: str) -> None:
        super().__init__(
            "No unused keywords available. Please generate more keywords.",
            details={"website_id": website_id},
        )


class NoUnusedKeywordsError(SEOPlannerError):
    """No unused pool keywords left to swap into a calendar assignment."""

    def __init__(self, website_id: str) -> None:
        super().__init__(
            "No unused keywords available. All keywords are assigned to content plans.",
            details={"website_id": website_id},
        )


class ConcurrencyConflictError(SEOPlannerError):
    """Allocation kept colliding with a concurrent run for the same website."""

    def __init__(self, website_id: str, attempts: int) -> None:
        super().__init__(
            f"Calendar allocation for website {website_id} conflicted {attempts} times",
            details={"website_id": website_id, "attempts": attempts},
        )


class OnboardingAllocationError(SEOPlannerError):
    """Website and pool were saved but the first calendar allocation failed."""

    def __init__(self, website_id: str, cause: Exception) -> None:
        super().__init__(
            "Website was created but its first calendar days could not be allocated. "
            "Extend the calendar for this website instead of onboarding again.",
            details={
                "reason": "allocation_failed",
                "website_id": website_id,
                "error": type(cause).__name__,
            },
        )
