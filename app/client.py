"""HTTP client for the recipe service, with the front end's fallbacks.

Image generation is best effort and returns None on failure. Ingredient
extraction falls back to local keyword matching when the service is
unreachable or refuses the request.
"""

import logging
from typing import List, Optional

import requests
from pydantic import ValidationError

from app.core.ingredient_extractor import extract_ingredients_simple
from app.core.payments import PaymentIntentResult
from app.core.recipe_generator import clean_ingredients
from app.models.schemas import GeneratedRecipe

logger = logging.getLogger(__name__)

MIN_SERVINGS = 1
MAX_SERVINGS = 20


class RecipeClientError(Exception):
    """A request to the recipe service failed."""


class RateLimitedError(RecipeClientError):
    """The service rejected the request with HTTP 429."""


class NoGenerationsLeft(RecipeClientError):
    """The paid session has used all of its generations."""


def _json_object(response: requests.Response) -> dict:
    """Return the response body if it is a JSON object, else an empty dict."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_message(response: requests.Response) -> str:
    error = _json_object(response).get("error")
    if isinstance(error, str) and error:
        return error
    return f"Server error: {response.status_code}"


class RecipeServiceClient:
    """Calls the recipe service endpoints."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        session: Optional[requests.Session] = None,
        timeout: float = 120.0,
        token: Optional[str] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token = token

    def _post(self, path: str, payload: dict) -> requests.Response:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return self.session.post(
            f"{self.base_url}{path}",
            json=payload,
            headers=headers,
            timeout=self.timeout
        )

    def generate_recipe(self, ingredients: List[str], user_id: str, servings: int = 4) -> GeneratedRecipe:
        """Generate a recipe; raises RecipeClientError on any failure."""
        if not ingredients:
            raise RecipeClientError("Ingredients are required")
        if not user_id:
            raise RecipeClientError("User ID is required")

        cleaned = clean_ingredients(ingredients)
        if not cleaned:
            raise RecipeClientError("Please provide valid ingredients")

        payload = {
            "ingredients": cleaned,
            "servings": max(MIN_SERVINGS, min(MAX_SERVINGS, servings)),
            "userId": user_id
        }

        try:
            response = self._post("/api/v1/recipes/generate", payload)
        except requests.RequestException as e:
            logger.error(f"Recipe generation request failed: {e}")
            raise RecipeClientError("Failed to generate recipe. Please try again.")

        if response.status_code == 429:
            raise RateLimitedError("Too many requests. Please wait a moment before trying again.")
        if not response.ok:
            raise RecipeClientError(_error_message(response))

        try:
            recipe = GeneratedRecipe.model_validate(response.json())
        except (ValueError, ValidationError):
            raise RecipeClientError("Invalid recipe received from server")

        logger.info(f"Recipe generated: {recipe.title}")
        return recipe

    def generate_food_image(
        self,
        recipe_title: str,
        ingredients: List[str],
        alternative: bool = False
    ) -> Optional[str]:
        """Return an image URL for the recipe, or None if anything goes wrong."""
        path = "/api/v1/images/generate-alt" if alternative else "/api/v1/images/generate"
        try:
            response = self._post(path, {"recipeTitle": recipe_title, "ingredients": ingredients})
            if not response.ok:
                logger.error(f"Image generation failed: {_error_message(response)}")
                return None
            url = _json_object(response).get("imageUrl")
            if not isinstance(url, str) or not url.startswith("http"):
                logger.error(f"Image generation returned no usable URL: {url!r}")
                return None
            return url
        except requests.RequestException as e:
            logger.error(f"Error calling image generation: {e}")
            return None

    def extract_ingredients(self, transcript: str, user_id: str) -> List[str]:
        """Extract ingredients from speech, falling back to keyword matching."""
        if not transcript or not transcript.strip():
            return []
        if not user_id:
            raise RecipeClientError("User authentication required")

        try:
            response = self._post(
                "/api/v1/ingredients/extract",
                {"transcript": transcript.strip(), "userId": user_id}
            )
            if response.status_code == 429:
                raise RateLimitedError("Too many requests. Please wait a moment.")
            if not response.ok:
                raise RecipeClientError(_error_message(response))
            ingredients = _json_object(response).get("ingredients")
            if not isinstance(ingredients, list) or not all(isinstance(i, str) for i in ingredients):
                raise RecipeClientError("Invalid ingredient list received from server")
            logger.info(f"Ingredients extracted by service: {ingredients}")
            return ingredients
        except (RecipeClientError, requests.RequestException) as e:
            logger.warning(f"Service extraction failed ({e}), falling back to simple extraction")
            return extract_ingredients_simple(transcript)

    def create_payment_intent(self, user_id: str, amount: int = 99, currency: str = "usd") -> PaymentIntentResult:
        """Create a payment intent; the client secret is confirmed by the payment widget."""
        try:
            response = self._post(
                "/api/v1/payments/intent",
                {"amount": amount, "currency": currency, "userId": user_id}
            )
        except requests.RequestException as e:
            raise RecipeClientError(f"Network error occurred: {e}")

        if not response.ok:
            raise RecipeClientError(_error_message(response) or "Failed to create payment intent")

        data = _json_object(response)
        if not data.get("clientSecret") or not data.get("paymentIntentId"):
            raise RecipeClientError("Invalid payment intent received from server")
        return PaymentIntentResult(
            client_secret=data["clientSecret"],
            payment_intent_id=data["paymentIntentId"]
        )

    def get_survey(self) -> dict:
        """Fetch the onboarding survey."""
        response = self.session.get(f"{self.base_url}/api/v1/survey", timeout=self.timeout)
        if not response.ok:
            raise RecipeClientError(_error_message(response))
        return response.json()

    def check_health(self) -> bool:
        """Return True if the service answers its health check."""
        try:
            return self.session.get(f"{self.base_url}/health", timeout=10).ok
        except requests.RequestException as e:
            logger.error(f"Health check failed: {e}")
            return False


class RecipeSession:
    """A paid session with a fixed number of recipe generations."""

    def __init__(self, client: RecipeServiceClient, user_id: str, allowance: int = 3, with_images: bool = True):
        self.client = client
        self.user_id = user_id
        self.remaining = allowance
        self.with_images = with_images
        self.history: List[GeneratedRecipe] = []

    def generate(self, ingredients: List[str], servings: int = 4) -> GeneratedRecipe:
        """Generate a recipe, illustrating it when possible.

        A generation is only used up when the recipe itself succeeds.
        """
        if self.remaining <= 0:
            raise NoGenerationsLeft("No generations left")

        valid = clean_ingredients(ingredients)
        if not valid:
            raise RecipeClientError("Please provide valid ingredients")

        recipe = self.client.generate_recipe(valid, self.user_id, servings)
        if self.with_images:
            recipe.image = self.client.generate_food_image(recipe.title, valid)

        self.remaining -= 1
        self.history.append(recipe)
        return recipe
