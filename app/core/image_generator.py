"""Food photography through the Replicate predictions HTTP API."""

import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

import requests

from app.core.errors import ImageGenerationError, ProviderNotConfigured
from config.settings import IMAGE_MODEL_CONFIGS, PROMPT_TEMPLATES

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {"succeeded", "failed", "canceled"}


def build_image_prompt(title: str, ingredients: Optional[List[str]] = None, alternative: bool = False) -> str:
    """Build a food photography prompt featuring up to three ingredients."""
    featured = ", ".join((ingredients or [])[:3])
    if alternative:
        clause = f", made with {featured}" if featured else ""
        return PROMPT_TEMPLATES["food_image_alt"].format(title=title, ingredient_clause=clause)
    clause = f", featuring {featured}" if featured else ""
    return PROMPT_TEMPLATES["food_image"].format(title=title, ingredient_clause=clause)


def build_model_input(prompt: str, alternative: bool = False, seed: Optional[int] = None) -> dict:
    """Build the Replicate ``input`` object for the chosen model."""
    config = IMAGE_MODEL_CONFIGS["alternative" if alternative else "primary"]
    model_input = {k: v for k, v in config.items() if k != "description"}
    model_input["prompt"] = prompt
    if alternative:
        model_input["negative_prompt"] = PROMPT_TEMPLATES["food_image_alt_negative"]
    else:
        model_input["seed"] = seed if seed is not None else random.randrange(1000000)
    return model_input


def extract_image_url(output: Any) -> Optional[str]:
    """Pull an http(s) URL out of the shapes image models return."""
    url = None
    if isinstance(output, str):
        url = output
    elif isinstance(output, list) and output:
        url = output[0]
    elif isinstance(output, dict):
        for key in ("url", "output", "data", "result"):
            if output.get(key):
                url = output[key]
                break
        if isinstance(url, (list, dict)):
            return extract_image_url(url)

    if isinstance(url, str) and url.startswith("http"):
        return url
    return None


class BaseImageGenerator(ABC):
    """Abstract base class for image generators."""

    @abstractmethod
    def generate(self, title: str, ingredients: List[str], alternative: bool = False) -> str:
        """Generate an image and return its URL."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the provider has what it needs to run."""
        pass


class MockImageGenerator(BaseImageGenerator):
    """Returns a placeholder image URL."""

    def generate(self, title: str, ingredients: List[str], alternative: bool = False) -> str:
        slug = "-".join(title.lower().split()) or "recipe"
        return f"https://images.example.com/mock/{slug}.jpg"

    def is_configured(self) -> bool:
        return True


class ReplicateImageGenerator(BaseImageGenerator):
    """Creates a Replicate prediction and polls it until it finishes."""

    def __init__(
        self,
        api_token: Optional[str],
        model_version: str,
        alt_model_version: str,
        api_url: str = "https://api.replicate.com/v1",
        poll_interval: float = 1.0,
        timeout: float = 120.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self._api_token = api_token
        self.model_version = model_version
        self.alt_model_version = alt_model_version
        self.api_url = api_url.rstrip("/")
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json"
        }

    def create_prediction(self, version: str, model_input: dict) -> dict:
        """POST a new prediction."""
        response = self._session.post(
            f"{self.api_url}/predictions",
            headers=self._headers(),
            json={"version": version, "input": model_input},
            timeout=30
        )
        response.raise_for_status()
        return response.json()

    def wait(self, prediction: dict) -> dict:
        """Poll a prediction until it reaches a terminal status."""
        deadline = self._clock() + self.timeout
        poll_url = prediction.get("urls", {}).get("get") or f"{self.api_url}/predictions/{prediction['id']}"

        while prediction.get("status") not in TERMINAL_STATUSES:
            if self._clock() >= deadline:
                raise ImageGenerationError("Image generation timed out")
            self._sleep(self.poll_interval)
            response = self._session.get(poll_url, headers=self._headers(), timeout=30)
            response.raise_for_status()
            prediction = response.json()

        return prediction

    def generate(self, title: str, ingredients: List[str], alternative: bool = False) -> str:
        """Generate a food photograph and return its URL."""
        if not self._api_token:
            raise ProviderNotConfigured("Replicate API token not configured")

        prompt = build_image_prompt(title, ingredients, alternative=alternative)
        version = self.alt_model_version if alternative else self.model_version
        logger.info(f"Generating image with Replicate: {prompt}")

        try:
            prediction = self.wait(self.create_prediction(version, build_model_input(prompt, alternative)))
        except requests.RequestException as e:
            logger.error(f"Replicate request failed: {e}")
            raise ImageGenerationError("Internal server error", details=str(e))

        logger.info(f"Final prediction status: {prediction.get('status')}")
        if prediction.get("status") != "succeeded":
            raise ImageGenerationError(
                "Failed to generate image",
                details=prediction.get("error") or prediction.get("status")
            )

        url = extract_image_url(prediction.get("output"))
        if not url:
            logger.error(f"No valid HTTP URL in prediction output: {prediction.get('output')!r}")
            raise ImageGenerationError("Failed to generate image - no valid URL returned")
        return url

    def is_configured(self) -> bool:
        return bool(self._api_token)
