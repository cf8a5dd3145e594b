"""Core application modules."""

from .errors import ServiceError
from .rate_limit import SlidingWindowRateLimiter
from .recipe_generator import OpenAIRecipeGenerator, MockRecipeGenerator
from .image_generator import ReplicateImageGenerator, MockImageGenerator
from .ingredient_extractor import GeminiIngredientExtractor, MockIngredientExtractor, extract_ingredients_simple
from .payments import StripePaymentGateway, MockPaymentGateway
from .speech import TranscriptAccumulator

__all__ = [
    "ServiceError",
    "SlidingWindowRateLimiter",
    "OpenAIRecipeGenerator",
    "MockRecipeGenerator",
    "ReplicateImageGenerator",
    "MockImageGenerator",
    "GeminiIngredientExtractor",
    "MockIngredientExtractor",
    "extract_ingredients_simple",
    "StripePaymentGateway",
    "MockPaymentGateway",
    "TranscriptAccumulator"
]
