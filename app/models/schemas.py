"""Pydantic models for API request/response schemas."""

from typing import Dict, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CamelModel(BaseModel):
    """Base model that accepts both field names and camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)


class Nutrition(BaseModel):
    """Per-serving nutrition estimate."""
    calories: float = Field(default=0, description="Calories per serving")
    protein: float = Field(default=0, description="Protein in grams")
    carbs: float = Field(default=0, description="Carbohydrates in grams")
    fat: float = Field(default=0, description="Fat in grams")


class GeneratedRecipe(BaseModel):
    """A recipe synthesized by the language model."""
    title: str = Field(min_length=1, description="Recipe title")
    difficulty: Literal["Easy", "Medium", "Hard"] = Field(default="Medium", description="Recipe difficulty")
    time: str = Field(default="", description="Total time, e.g. '30 minutes'")
    ingredients: List[str] = Field(min_length=1, description="Ingredients with quantities")
    instructions: List[str] = Field(min_length=1, description="Ordered cooking steps")
    nutrition: Optional[Nutrition] = Field(default=None, description="Nutrition breakdown")
    image: Optional[str] = Field(default=None, description="Illustration URL, when requested")

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        if not isinstance(value, str):
            return "Medium"
        value = value.strip().capitalize()
        return value if value in ("Easy", "Medium", "Hard") else "Medium"

    @field_validator("time", mode="before")
    @classmethod
    def coerce_time(cls, value):
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return f"{value} minutes"
        return str(value)


class RecipeRequest(CamelModel):
    """Request body for the recipe generation endpoint."""
    ingredients: Optional[List[str]] = Field(default=None, description="Available ingredients")
    servings: Optional[int] = Field(default=None, ge=1, le=20, description="Number of servings (1-20)")
    user_id: Optional[str] = Field(default=None, alias="userId", description="Caller identity")
    include_image: bool = Field(
        default=False,
        alias="includeImage",
        description="Also illustrate the recipe; failures leave image empty"
    )


class ImageRequest(CamelModel):
    """Request body for the image generation endpoints."""
    recipe_title: Optional[str] = Field(default=None, alias="recipeTitle", description="Recipe title")
    ingredients: List[str] = Field(default_factory=list, description="Recipe ingredients")


class ImageResponse(CamelModel):
    """Response body for the image generation endpoints."""
    image_url: str = Field(alias="imageUrl", description="URL of the generated image")


class PaymentIntentRequest(CamelModel):
    """Request body for the payment intent endpoint."""
    amount: Optional[int] = Field(default=None, gt=0, description="Amount in cents")
    currency: str = Field(default="usd", min_length=3, max_length=3, description="ISO currency code")
    user_id: Optional[str] = Field(default=None, alias="userId", description="Caller identity")


class PaymentIntentResponse(CamelModel):
    """Response body for the payment intent endpoint."""
    client_secret: str = Field(alias="clientSecret", description="Secret used to confirm the payment")
    payment_intent_id: str = Field(alias="paymentIntentId", description="Payment intent identifier")


class SpeechResult(CamelModel):
    """One speech recognition result as reported by the browser."""
    transcript: str = Field(description="Recognized text")
    is_final: bool = Field(default=True, alias="isFinal", description="Whether the text is settled")


class ExtractRequest(CamelModel):
    """Request body for the ingredient extraction endpoint."""
    transcript: Optional[str] = Field(default=None, description="Speech transcript")
    results: Optional[List[SpeechResult]] = Field(
        default=None,
        description="Raw recognition results, used when no transcript is given"
    )
    user_id: Optional[str] = Field(default=None, alias="userId", description="Caller identity")


class ExtractResponse(BaseModel):
    """Response body for the ingredient extraction endpoint."""
    ingredients: List[str] = Field(description="Ingredients found in the transcript")


class SurveyQuestionSchema(BaseModel):
    """A single onboarding survey question."""
    id: str = Field(description="Question identifier")
    question: str = Field(description="Question text")
    options: List[str] = Field(description="Allowed answers")


class SurveyResponse(BaseModel):
    """Response body for the survey endpoint."""
    total: int = Field(description="Number of questions")
    questions: List[SurveyQuestionSchema] = Field(description="Questions in display order")


class SurveySubmission(BaseModel):
    """Answers keyed by question id."""
    answers: Dict[str, str] = Field(description="Selected option per question")


class OfferResponse(CamelModel):
    """Paid access offer shown once the survey is complete."""
    product: str = Field(description="Product code")
    description: str = Field(description="Human readable offer")
    price_cents: int = Field(alias="priceCents", description="Price in cents")
    currency: str = Field(description="ISO currency code")
    generations: int = Field(description="Recipe generations included")


class SurveyCompletion(BaseModel):
    """Response body after a completed survey."""
    completed: bool = Field(description="Whether every question was answered")
    answers: Dict[str, str] = Field(description="Validated answers")
    offer: OfferResponse = Field(description="Offer unlocked by the survey")


class HealthResponse(BaseModel):
    """Response body for the /health endpoint."""
    status: str = Field(description="Service status")
    message: str = Field(description="Status message")
    version: str = Field(description="API version")
    mock_mode: bool = Field(description="Whether fake providers are in use")
    providers: Dict[str, bool] = Field(description="Which providers have credentials configured")


class ErrorResponse(BaseModel):
    """Error body returned by every endpoint."""
    error: str = Field(description="User-facing error message")
    details: Optional[str] = Field(default=None, description="Provider detail, when available")
