"""FastAPI application for the ForkedAI recipe service."""

import logging
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.models.schemas import (
    GeneratedRecipe,
    RecipeRequest,
    ImageRequest,
    ImageResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    ExtractRequest,
    ExtractResponse,
    SurveyResponse,
    SurveySubmission,
    SurveyCompletion,
    OfferResponse,
    HealthResponse,
    ErrorResponse
)
from app.core.errors import RateLimitExceeded, ServiceError
from app.core.rate_limit import SlidingWindowRateLimiter
from app.core.recipe_generator import (
    BaseRecipeGenerator,
    OpenAIRecipeGenerator,
    MockRecipeGenerator,
    clean_ingredients
)
from app.core.image_generator import BaseImageGenerator, ReplicateImageGenerator, MockImageGenerator
from app.core.ingredient_extractor import (
    BaseIngredientExtractor,
    GeminiIngredientExtractor,
    MockIngredientExtractor,
    sanitize_transcript
)
from app.core.payments import BasePaymentGateway, StripePaymentGateway, MockPaymentGateway
from app.core.identity import resolve_user_id
from app.core.speech import TranscriptAccumulator
from app.core import survey
from config.settings import Settings, get_settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

recipe_generator: BaseRecipeGenerator = None
image_generator: BaseImageGenerator = None
ingredient_extractor: BaseIngredientExtractor = None
payment_gateway: BasePaymentGateway = None
recipe_limiter: SlidingWindowRateLimiter = None
extraction_limiter: SlidingWindowRateLimiter = None


def init_providers(settings: Settings) -> None:
    """Create provider clients and rate limiters from settings."""
    global recipe_generator, image_generator, ingredient_extractor, payment_gateway
    global recipe_limiter, extraction_limiter

    if settings.use_mock:
        recipe_generator = MockRecipeGenerator()
        image_generator = MockImageGenerator()
        ingredient_extractor = MockIngredientExtractor()
        payment_gateway = MockPaymentGateway()
        logger.info("Mock providers initialized")
    else:
        recipe_generator = OpenAIRecipeGenerator(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature
        )
        image_generator = ReplicateImageGenerator(
            api_token=settings.replicate_api_token,
            model_version=settings.image_model_version,
            alt_model_version=settings.image_alt_model_version,
            api_url=settings.replicate_api_url,
            poll_interval=settings.image_poll_interval,
            timeout=settings.image_timeout
        )
        ingredient_extractor = GeminiIngredientExtractor(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            max_ingredients=settings.max_extracted_ingredients
        )
        payment_gateway = StripePaymentGateway(
            secret_key=settings.stripe_secret_key,
            product=settings.product_code
        )
        for name, provider in [
            ("OpenAI", recipe_generator),
            ("Replicate", image_generator),
            ("Gemini", ingredient_extractor),
            ("Stripe", payment_gateway)
        ]:
            if not provider.is_configured():
                logger.warning(f"{name} credentials missing, its endpoint will fail")

    recipe_limiter = SlidingWindowRateLimiter(
        max_requests=settings.recipe_rate_limit,
        window_seconds=settings.rate_limit_window,
        max_users=settings.rate_limit_max_users
    )
    extraction_limiter = SlidingWindowRateLimiter(
        max_requests=settings.extraction_rate_limit,
        window_seconds=settings.rate_limit_window,
        max_users=settings.rate_limit_max_users
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} recipe service...")
    init_providers(settings)

    yield

    logger.info(f"Shutting down {settings.app_name} recipe service...")


app = FastAPI(
    title="ForkedAI Recipe API",
    description="Recipe generation, food imagery, ingredient extraction and payments",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


def _validation_message(errors) -> str:
    """Summarize pydantic errors in one line."""
    if not errors:
        return "Invalid request"
    if any(e.get("type") == "json_invalid" for e in errors):
        return "Invalid JSON body"
    missing = [str(e["loc"][-1]) for e in errors if e.get("type") == "missing"]
    if missing and len(missing) == len(errors):
        return f"Missing required fields: {', '.join(missing)}"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"Invalid value for {field}: {first['msg']}" if field else first["msg"]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": _validation_message(exc.errors())})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error = "Method not allowed" if exc.status_code == 405 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"error": error}, headers=exc.headers)


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    content = {"error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


def _caller_id(authorization: Optional[str], body_user_id: Optional[str]) -> Optional[str]:
    settings = get_settings()
    return resolve_user_id(
        authorization,
        body_user_id,
        jwt_secret=settings.identity_jwt_secret,
        require_identity=settings.require_identity
    )


ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse}
}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check service health and provider configuration."""
    settings = get_settings()
    providers = {}
    for name, provider in [
        ("openai", recipe_generator),
        ("replicate", image_generator),
        ("gemini", ingredient_extractor),
        ("stripe", payment_gateway)
    ]:
        providers[name] = provider.is_configured() if provider else False

    return HealthResponse(
        status="OK",
        message="Backend server is running",
        version=settings.app_version,
        mock_mode=settings.use_mock,
        providers=providers
    )


@app.post(
    "/api/v1/recipes/generate",
    response_model=GeneratedRecipe,
    responses=ERROR_RESPONSES,
    tags=["Recipes"]
)
def generate_recipe(request: RecipeRequest, authorization: Optional[str] = Header(default=None)):
    """
    Generate a recipe from the caller's ingredients.

    - **ingredients**: Available ingredients
    - **servings**: Number of servings (1-20)
    - **userId**: Caller identity, used for rate limiting
    - **includeImage**: Also illustrate the recipe (best effort)
    """
    user_id = _caller_id(authorization, request.user_id)
    ingredients = clean_ingredients(request.ingredients or [])

    if not ingredients or not request.servings or not user_id:
        raise HTTPException(status_code=400, detail="Missing required fields: ingredients, servings, userId")

    if not recipe_limiter.check(user_id):
        raise RateLimitExceeded("Rate limit exceeded. Please try again later.")

    try:
        recipe = recipe_generator.generate(ingredients, request.servings)
    except ServiceError as e:
        logger.error(f"Recipe generation error: {e.message} {e.details or ''}")
        raise HTTPException(status_code=500, detail="Failed to generate recipe. Please try again.")

    if request.include_image:
        try:
            recipe.image = image_generator.generate(recipe.title, ingredients)
        except ServiceError as e:
            logger.warning(f"Image generation failed, returning recipe without image: {e.message}")
            recipe.image = None

    return recipe


@app.post(
    "/api/v1/images/generate",
    response_model=ImageResponse,
    responses=ERROR_RESPONSES,
    tags=["Images"]
)
def generate_food_image(request: ImageRequest):
    """Generate a food photograph for a recipe."""
    if not request.recipe_title or not request.recipe_title.strip():
        raise HTTPException(status_code=400, detail="Recipe title is required")

    url = image_generator.generate(request.recipe_title.strip(), request.ingredients)
    logger.info(f"Returning image URL: {url}")
    return ImageResponse(image_url=url)


@app.post(
    "/api/v1/images/generate-alt",
    response_model=ImageResponse,
    responses=ERROR_RESPONSES,
    tags=["Images"]
)
def generate_food_image_alternative(request: ImageRequest):
    """Generate a food photograph with the alternative, more artistic model."""
    if not request.recipe_title or not request.recipe_title.strip():
        raise HTTPException(status_code=400, detail="Recipe title is required")

    url = image_generator.generate(request.recipe_title.strip(), request.ingredients, alternative=True)
    return ImageResponse(image_url=url)


@app.post(
    "/api/v1/payments/intent",
    response_model=PaymentIntentResponse,
    responses=ERROR_RESPONSES,
    tags=["Payments"]
)
def create_payment_intent(request: PaymentIntentRequest, authorization: Optional[str] = Header(default=None)):
    """Create a payment intent for recipe generator access."""
    user_id = _caller_id(authorization, request.user_id)
    if not request.amount or not user_id:
        raise HTTPException(status_code=400, detail="Missing required fields: amount, userId")

    result = payment_gateway.create_intent(request.amount, request.currency, user_id)
    return PaymentIntentResponse(
        client_secret=result.client_secret,
        payment_intent_id=result.payment_intent_id
    )


@app.post(
    "/api/v1/ingredients/extract",
    response_model=ExtractResponse,
    responses=ERROR_RESPONSES,
    tags=["Ingredients"]
)
def extract_ingredients(request: ExtractRequest, authorization: Optional[str] = Header(default=None)):
    """
    Extract ingredients from a speech transcript.

    - **transcript**: What the user said
    - **results**: Raw recognition results, assembled when no transcript is sent
    - **userId**: Caller identity, used for rate limiting
    """
    user_id = _caller_id(authorization, request.user_id)
    transcript = request.transcript
    if not transcript and request.results:
        accumulator = TranscriptAccumulator()
        accumulator.start()
        accumulator.add_results([(r.transcript, r.is_final) for r in request.results])
        transcript = accumulator.finish()

    if not transcript or not transcript.strip() or not user_id:
        raise HTTPException(status_code=400, detail="Missing transcript or userId")

    if not extraction_limiter.check(user_id):
        raise RateLimitExceeded("Rate limit exceeded")

    settings = get_settings()
    clean_transcript = sanitize_transcript(transcript, settings.transcript_max_chars)

    try:
        ingredients = ingredient_extractor.extract(clean_transcript)
    except ServiceError as e:
        logger.error(f"Ingredient extraction error: {e.message} {e.details or ''}")
        raise HTTPException(status_code=500, detail="Failed to extract ingredients")

    return ExtractResponse(ingredients=ingredients)


@app.get("/api/v1/survey", response_model=SurveyResponse, tags=["Survey"])
async def get_survey():
    """List the onboarding survey questions."""
    return SurveyResponse(
        total=len(survey.QUESTIONS),
        questions=[q.to_dict() for q in survey.QUESTIONS]
    )


@app.post(
    "/api/v1/survey/responses",
    response_model=SurveyCompletion,
    responses={400: {"model": ErrorResponse}},
    tags=["Survey"]
)
async def submit_survey(submission: SurveySubmission):
    """Validate a completed survey and return the unlocked offer."""
    answers = survey.validate_answers(submission.answers)
    return SurveyCompletion(
        completed=True,
        answers=answers,
        offer=OfferResponse(**survey.build_offer(get_settings()))
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=5000,
        reload=True
    )
