"""Recipe synthesis through a chat-completion language model."""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import ValidationError

from app.core.errors import ProviderNotConfigured, RecipeGenerationError
from app.models.schemas import GeneratedRecipe
from config.settings import PROMPT_TEMPLATES

logger = logging.getLogger(__name__)

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")


def clean_ingredients(ingredients: List[str]) -> List[str]:
    """Trim ingredient names and drop blank entries."""
    return [ing.strip() for ing in ingredients if ing and ing.strip()]


def build_recipe_prompt(ingredients: List[str], servings: int) -> str:
    """Build the user prompt asking for a JSON recipe."""
    return PROMPT_TEMPLATES["recipe_generation"].format(
        ingredients=", ".join(ingredients),
        servings=servings
    )


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_START.sub("", cleaned)
        cleaned = _FENCE_END.sub("", cleaned)
    return cleaned


def parse_recipe_response(text: str) -> GeneratedRecipe:
    """Parse and validate the model's JSON answer."""
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        raise RecipeGenerationError("Invalid JSON response from AI")

    if not isinstance(data, dict):
        raise RecipeGenerationError("Invalid JSON response from AI")

    if not data.get("title") or not data.get("ingredients") or not data.get("instructions"):
        raise RecipeGenerationError("AI returned incomplete recipe")

    data.pop("image", None)
    try:
        return GeneratedRecipe.model_validate(data)
    except ValidationError as e:
        logger.error(f"Recipe failed validation: {e}")
        raise RecipeGenerationError("AI returned incomplete recipe")


class BaseRecipeGenerator(ABC):
    """Abstract base class for recipe generators."""

    @abstractmethod
    def generate(self, ingredients: List[str], servings: int) -> GeneratedRecipe:
        """Generate a recipe for the given ingredients."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the provider has what it needs to run."""
        pass


class MockRecipeGenerator(BaseRecipeGenerator):
    """Deterministic generator for tests and offline development."""

    def generate(self, ingredients: List[str], servings: int) -> GeneratedRecipe:
        main = ingredients[0].title() if ingredients else "Pantry"
        return GeneratedRecipe(
            title=f"Simple {main} Skillet",
            difficulty="Easy",
            time="25 minutes",
            ingredients=[f"{ing} (for {servings} servings)" for ing in ingredients],
            instructions=[
                "Prepare all ingredients - chop, dice, or slice as needed.",
                "Heat a pan with a little oil over medium heat.",
                "Cook the ingredients from longest to shortest cooking time.",
                "Season with salt and pepper to taste and serve."
            ],
            nutrition={"calories": 420, "protein": 18, "carbs": 35, "fat": 16}
        )

    def is_configured(self) -> bool:
        return True


class OpenAIRecipeGenerator(BaseRecipeGenerator):
    """Generates recipes with the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        max_tokens: int = 1500,
        temperature: float = 0.7,
        client=None
    ):
        self._api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self._api_key:
                raise ProviderNotConfigured("OpenAI API key not configured")
            from openai import OpenAI
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def build_messages(self, ingredients: List[str], servings: int) -> List[dict]:
        """Build the chat messages sent to the model."""
        return [
            {"role": "system", "content": PROMPT_TEMPLATES["recipe_system"]},
            {"role": "user", "content": build_recipe_prompt(ingredients, servings)}
        ]

    def generate(self, ingredients: List[str], servings: int) -> GeneratedRecipe:
        """Generate a recipe using the chat completions endpoint."""
        client = self._get_client()
        logger.info(f"Requesting recipe for {len(ingredients)} ingredients, {servings} servings")

        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(ingredients, servings),
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
        except Exception as e:
            logger.error(f"OpenAI request failed: {e}")
            raise RecipeGenerationError("OpenAI request failed", details=str(e))

        content = None
        if completion.choices:
            content = completion.choices[0].message.content
        if not content:
            raise RecipeGenerationError("No response from OpenAI")

        recipe = parse_recipe_response(content)
        logger.info(f"Generated recipe: {recipe.title}")
        return recipe

    def is_configured(self) -> bool:
        return bool(self._api_key) or self._client is not None
