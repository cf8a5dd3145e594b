"""API models for the ForkedAI recipe service."""

from .schemas import (
    Nutrition,
    GeneratedRecipe,
    RecipeRequest,
    ImageRequest,
    ImageResponse,
    SpeechResult,
    PaymentIntentRequest,
    PaymentIntentResponse,
    ExtractRequest,
    ExtractResponse,
    SurveyQuestionSchema,
    SurveyResponse,
    SurveySubmission,
    SurveyCompletion,
    OfferResponse,
    HealthResponse,
    ErrorResponse
)

__all__ = [
    "Nutrition",
    "GeneratedRecipe",
    "RecipeRequest",
    "ImageRequest",
    "ImageResponse",
    "SpeechResult",
    "PaymentIntentRequest",
    "PaymentIntentResponse",
    "ExtractRequest",
    "ExtractResponse",
    "SurveyQuestionSchema",
    "SurveyResponse",
    "SurveySubmission",
    "SurveyCompletion",
    "OfferResponse",
    "HealthResponse",
    "ErrorResponse"
]
