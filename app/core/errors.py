"""Exceptions raised by the provider wrappers."""


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ProviderNotConfigured(ServiceError):
    """A provider credential is missing from the environment."""


class RecipeGenerationError(ServiceError):
    """The language model call failed or returned an unusable recipe."""


class ImageGenerationError(ServiceError):
    """The image model call failed or returned no usable URL."""


class ExtractionError(ServiceError):
    """Ingredient extraction from a transcript failed."""


class PaymentError(ServiceError):
    """The payment provider rejected the request."""


class IdentityError(ServiceError):
    """The identity token could not be verified."""

    status_code = 401


class SurveyError(ServiceError):
    """Survey answers did not match the questionnaire."""

    status_code = 400


class RateLimitExceeded(ServiceError):
    """The caller exceeded the per-user request budget."""

    status_code = 429
