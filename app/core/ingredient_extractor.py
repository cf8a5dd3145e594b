"""Ingredient extraction from free-form speech transcripts."""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional

from rapidfuzz import fuzz, process

from app.core.errors import ExtractionError, ProviderNotConfigured
from app.core.recipe_generator import strip_code_fences
from config.settings import PROMPT_TEMPLATES

logger = logging.getLogger(__name__)

COMMON_INGREDIENTS = [
    "chicken", "beef", "pork", "fish", "salmon", "tuna", "shrimp",
    "rice", "pasta", "bread", "quinoa", "barley", "oats",
    "tomato", "onion", "garlic", "potato", "carrot", "celery",
    "bell pepper", "broccoli", "spinach", "lettuce", "mushroom",
    "cheese", "milk", "butter", "cream", "yogurt", "egg",
    "salt", "pepper", "oil", "olive oil", "vinegar",
    "basil", "oregano", "thyme", "rosemary", "parsley",
    "ginger", "turmeric", "cumin", "paprika", "chili",
    "lemon", "lime", "apple", "banana", "orange",
    "jasmine rice", "brown rice", "basmati rice",
    "ground beef", "chicken breast", "pork chops",
]

MULTI_WORD_INGREDIENTS = [ing for ing in COMMON_INGREDIENTS if " " in ing]
SINGLE_WORD_INGREDIENTS = [ing for ing in COMMON_INGREDIENTS if " " not in ing]

FUZZY_WORD_THRESHOLD = 90


def sanitize_transcript(transcript, limit: int = 500) -> str:
    """Coerce to text, trim, and cap the length sent to the model."""
    return str(transcript).strip()[:limit]


def build_extraction_prompt(transcript: str, max_ingredients: int = 10) -> str:
    """Build the prompt asking the model for a JSON array of ingredients."""
    return PROMPT_TEMPLATES["ingredient_extraction"].format(
        transcript=transcript,
        max_ingredients=max_ingredients
    )


def parse_ingredient_list(text: str, max_ingredients: int = 10) -> List[str]:
    """Parse the model's JSON array answer."""
    try:
        data = json.loads(strip_code_fences(text or ""))
    except json.JSONDecodeError:
        raise ExtractionError("Failed to extract ingredients", details="Model returned invalid JSON")

    if not isinstance(data, list):
        raise ExtractionError("Failed to extract ingredients", details="Model did not return a list")

    ingredients = [str(item).strip() for item in data if isinstance(item, (str, int, float))]
    return [ing for ing in ingredients if ing][:max_ingredients]


def _normalize_word(word: str) -> str:
    return re.sub(r"[^\w\s]", "", word.lower())


def extract_ingredients_simple(transcript: str) -> List[str]:
    """Keyword fallback used when the extraction service is unavailable.

    Multi-word ingredients are matched first so "brown rice" is not also
    reported as "rice". Single words tolerate plurals and small
    transcription errors.
    """
    text = transcript.lower()
    words = [w for w in (_normalize_word(w) for w in text.split()) if w]
    forms = set(words)
    forms.update(w[:-1] for w in words if w.endswith("s") and len(w) > 3)
    forms.update(w[:-2] for w in words if w.endswith("es") and len(w) > 4)
    found: List[str] = []

    for ingredient in MULTI_WORD_INGREDIENTS:
        if ingredient in text:
            found.append(ingredient)

    for ingredient in SINGLE_WORD_INGREDIENTS:
        if any(ingredient in f.split() for f in found):
            continue
        if ingredient in forms:
            found.append(ingredient)
            continue
        if len(ingredient) < 5:
            continue
        # "creamy" and "buttery" describe a dish, they are not ingredients
        candidates = [w for w in words if w != ingredient + "y"]
        if not candidates:
            continue
        match = process.extractOne(
            ingredient,
            candidates,
            scorer=fuzz.ratio,
            score_cutoff=FUZZY_WORD_THRESHOLD
        )
        if match:
            found.append(ingredient)

    logger.info(f"Simple extraction found: {found}")
    return found


class BaseIngredientExtractor(ABC):
    """Abstract base class for transcript ingredient extractors."""

    @abstractmethod
    def extract(self, transcript: str) -> List[str]:
        """Return the ingredients mentioned in ``transcript``."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the provider has what it needs to run."""
        pass


class MockIngredientExtractor(BaseIngredientExtractor):
    """Uses the keyword matcher instead of a model."""

    def extract(self, transcript: str) -> List[str]:
        return extract_ingredients_simple(transcript)[:10]

    def is_configured(self) -> bool:
        return True


class GeminiIngredientExtractor(BaseIngredientExtractor):
    """Extracts ingredients with a Gemini model."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "gemini-1.5-flash",
        max_ingredients: int = 10,
        model=None
    ):
        self._api_key = api_key
        self.model_name = model_name
        self.max_ingredients = max_ingredients
        self._model = model

    def _get_model(self):
        if self._model is None:
            if not self._api_key:
                raise ProviderNotConfigured("Gemini API key not configured")
            import google.generativeai as genai
            genai.configure(api_key=self._api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    def extract(self, transcript: str) -> List[str]:
        """Ask the model for the ingredients in ``transcript``."""
        model = self._get_model()
        prompt = build_extraction_prompt(transcript, self.max_ingredients)

        try:
            response = model.generate_content(prompt)
            text = response.text
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise ExtractionError("Failed to extract ingredients", details=str(e))

        ingredients = parse_ingredient_list(text, self.max_ingredients)
        logger.info(f"Extracted ingredients: {ingredients}")
        return ingredients

    def is_configured(self) -> bool:
        return bool(self._api_key) or self._model is not None
