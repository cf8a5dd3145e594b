"""
Configuration settings for the ForkedAI recipe service.
Provider credentials are read from the environment or a .env file.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application settings
    app_name: str = "ForkedAI"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 5000

    # Use in-process fake providers instead of the real APIs
    use_mock: bool = False

    # Provider credentials
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RECIPE_OPENAI_API_KEY", "OPENAI_API_KEY")
    )
    replicate_api_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RECIPE_REPLICATE_API_TOKEN", "REPLICATE_API_TOKEN")
    )
    stripe_secret_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RECIPE_STRIPE_SECRET_KEY", "STRIPE_SECRET_KEY")
    )
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RECIPE_GEMINI_API_KEY", "GEMINI_API_KEY")
    )
    identity_jwt_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RECIPE_IDENTITY_JWT_SECRET", "NETLIFY_IDENTITY_JWT_SECRET")
    )
    require_identity: bool = False

    # Recipe generation (OpenAI)
    openai_model: str = "gpt-4o-mini"
    max_tokens: int = 1500
    temperature: float = 0.7

    # Ingredient extraction (Gemini)
    gemini_model: str = "gemini-1.5-flash"
    transcript_max_chars: int = 500
    max_extracted_ingredients: int = 10

    # Image generation (Replicate)
    replicate_api_url: str = "https://api.replicate.com/v1"
    image_model_version: str = "80a09d66baa990429c2f5ae8a4306bf778a1b3775afd01cc2cc8bdbe9033769c"
    image_alt_model_version: str = "9936c2001faa2194a261c01381f90e65261879985476014a0a37a334593a05eb"
    image_poll_interval: float = 1.0
    image_timeout: float = 120.0

    # Rate limiting (per user, in-memory)
    rate_limit_window: int = 60
    recipe_rate_limit: int = 5
    extraction_rate_limit: int = 10
    rate_limit_max_users: int = 10000

    # Pricing
    price_cents: int = 99
    currency: str = "usd"
    generations_per_purchase: int = 3
    product_code: str = "forkedai-recipe-access"

    class Config:
        env_file = ".env"
        env_prefix = "RECIPE_"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Prompt templates for the external models
PROMPT_TEMPLATES = {
    "recipe_system": "You are a professional chef. Return only valid JSON responses with no additional text or formatting.",

    "recipe_generation": """Create a detailed, professional recipe using these ingredients: {ingredients} for {servings} servings.

Return your response as a JSON object with this exact structure:
{{
  "title": "Recipe Name",
  "difficulty": "Easy" or "Medium" or "Hard",
  "time": "XX minutes",
  "ingredients": ["ingredient 1", "ingredient 2", ...],
  "instructions": ["step 1", "step 2", ...],
  "nutrition": {{
    "calories": number,
    "protein": number,
    "carbs": number,
    "fat": number
  }}
}}

Important: Return ONLY the JSON object, no additional text or formatting.""",

    "ingredient_extraction": """Extract ingredients from this text and return a JSON array: "{transcript}"

    Rules:
    - Keep multi-word ingredients together (e.g., "jasmine rice")
    - Return only ["ingredient1", "ingredient2"] format
    - Maximum {max_ingredients} ingredients""",

    "food_image": "Professional food photography of {title}{ingredient_clause}, shot with high-end camera, perfect lighting, restaurant quality presentation, appetizing, delicious, high resolution, detailed, commercial food photography style, clean background, elegant plating, food styling, mouth-watering, vibrant colors, sharp focus",

    "food_image_alt": "Ultra-realistic professional food photography of {title}{ingredient_clause}, commercial kitchen lighting, high-end restaurant presentation, appetizing, mouth-watering, detailed textures, perfect composition, food styling, magazine quality, 8K resolution",

    "food_image_alt_negative": "cartoon, anime, drawing, painting, illustration, blurry, low quality, amateur, messy, unappetizing, ugly, distorted"
}

# Replicate inputs for each image model
IMAGE_MODEL_CONFIGS = {
    "primary": {
        "aspect_ratio": "1:1",
        "prompt_upsampling": True,
        "output_format": "jpg",
        "output_quality": 95,
        "safety_tolerance": 2,
        "description": "FLUX 1.1 Pro, high quality square food photography"
    },
    "alternative": {
        "width": 768,
        "height": 768,
        "num_outputs": 1,
        "num_inference_steps": 50,
        "guidance_scale": 7.5,
        "description": "openjourney, more artistic results"
    }
}
