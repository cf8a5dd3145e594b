"""Unit tests for the HTTP client and the CLI."""

import io
import json
import pytest
import requests
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.client import (
    NoGenerationsLeft,
    RateLimitedError,
    RecipeClientError,
    RecipeServiceClient,
    RecipeSession
)
from app.core.speech import TranscriptAccumulator
from app.models.schemas import GeneratedRecipe

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

import recipe_cli

RECIPE = {
    "title": "Fried Rice",
    "difficulty": "Easy",
    "time": "20 minutes",
    "ingredients": ["2 cups rice", "2 eggs"],
    "instructions": ["Fry the rice.", "Add the eggs."],
    "nutrition": {"calories": 450, "protein": 14, "carbs": 70, "fat": 12},
    "image": None
}


class FakeResponse:
    def __init__(self, status_code=200, data=None):
        self.status_code = status_code
        self._data = data

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._data is None:
            raise ValueError("No JSON")
        return self._data


class FakeSession:
    """Maps request paths to canned responses."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def _respond(self, url):
        path = url.split("://", 1)[-1].split("/", 1)[-1]
        response = self.routes["/" + path]
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers})
        return self._respond(url)

    def get(self, url, timeout=None):
        self.requests.append({"url": url})
        return self._respond(url)


def make_client(routes, **kwargs):
    session = FakeSession(routes)
    return RecipeServiceClient(base_url="http://svc", session=session, **kwargs), session


class TestGenerateRecipe:
    """Tests for RecipeServiceClient.generate_recipe."""

    def test_payload_and_result(self):
        client, session = make_client({"/api/v1/recipes/generate": FakeResponse(200, RECIPE)})

        recipe = client.generate_recipe([" rice ", "", "eggs"], "user-1", servings=50)

        assert recipe.title == "Fried Rice"
        sent = session.requests[0]["json"]
        assert sent == {"ingredients": ["rice", "eggs"], "servings": 20, "userId": "user-1"}

    def test_servings_clamped_low(self):
        client, session = make_client({"/api/v1/recipes/generate": FakeResponse(200, RECIPE)})

        client.generate_recipe(["rice"], "user-1", servings=0)

        assert session.requests[0]["json"]["servings"] == 1

    def test_bearer_token_sent(self):
        client, session = make_client({"/api/v1/recipes/generate": FakeResponse(200, RECIPE)}, token="jwt")

        client.generate_recipe(["rice"], "user-1")

        assert session.requests[0]["headers"]["Authorization"] == "Bearer jwt"

    @pytest.mark.parametrize("ingredients,user_id,message", [
        ([], "user-1", "Ingredients are required"),
        (["rice"], "", "User ID is required"),
        (["  "], "user-1", "Please provide valid ingredients"),
    ])
    def test_local_validation(self, ingredients, user_id, message):
        client, session = make_client({})

        with pytest.raises(RecipeClientError, match=message):
            client.generate_recipe(ingredients, user_id)
        assert session.requests == []

    def test_rate_limited(self):
        client, _ = make_client({"/api/v1/recipes/generate": FakeResponse(429, {"error": "Rate limit exceeded"})})

        with pytest.raises(RateLimitedError, match="Too many requests"):
            client.generate_recipe(["rice"], "user-1")

    def test_server_error_message(self):
        client, _ = make_client({
            "/api/v1/recipes/generate": FakeResponse(500, {"error": "Failed to generate recipe. Please try again."})
        })

        with pytest.raises(RecipeClientError, match="Failed to generate recipe"):
            client.generate_recipe(["rice"], "user-1")

    def test_server_error_without_body(self):
        client, _ = make_client({"/api/v1/recipes/generate": FakeResponse(502)})

        with pytest.raises(RecipeClientError, match="Server error: 502"):
            client.generate_recipe(["rice"], "user-1")

    def test_invalid_recipe(self):
        client, _ = make_client({"/api/v1/recipes/generate": FakeResponse(200, {"title": "Half a recipe"})})

        with pytest.raises(RecipeClientError, match="Invalid recipe received from server"):
            client.generate_recipe(["rice"], "user-1")


class TestBestEffortCalls:
    """Tests for image and extraction fallbacks."""

    def test_image_url(self):
        client, session = make_client({"/api/v1/images/generate": FakeResponse(200, {"imageUrl": "https://x/y.jpg"})})

        assert client.generate_food_image("Fried Rice", ["rice"]) == "https://x/y.jpg"
        assert session.requests[0]["json"] == {"recipeTitle": "Fried Rice", "ingredients": ["rice"]}

    def test_image_alternative_path(self):
        client, session = make_client({"/api/v1/images/generate-alt": FakeResponse(200, {"imageUrl": "https://x/z.jpg"})})

        assert client.generate_food_image("Fried Rice", [], alternative=True) == "https://x/z.jpg"

    @pytest.mark.parametrize("response", [
        FakeResponse(500, {"error": "Replicate API token not configured"}),
        FakeResponse(500, ["bad gateway"]),
        FakeResponse(200, ["https://x/a.jpg"]),
        FakeResponse(200, "https://x/a.jpg"),
        FakeResponse(200, {"imageUrl": None}),
        FakeResponse(200, {"imageUrl": "data:image/png;base64,AAA"}),
        requests.ConnectionError("refused"),
    ])
    def test_image_failure_returns_none(self, response):
        client, _ = make_client({"/api/v1/images/generate": response})

        assert client.generate_food_image("Fried Rice", []) is None

    def test_extract_uses_service(self):
        client, _ = make_client({"/api/v1/ingredients/extract": FakeResponse(200, {"ingredients": ["jasmine rice"]})})

        assert client.extract_ingredients("jasmine rice please", "user-1") == ["jasmine rice"]

    @pytest.mark.parametrize("response", [
        FakeResponse(500, {"error": "Failed to extract ingredients"}),
        FakeResponse(429, {"error": "Rate limit exceeded"}),
        FakeResponse(502, ["bad gateway"]),
        FakeResponse(200, ["chicken"]),
        FakeResponse(200, {"ingredients": "chicken"}),
        FakeResponse(200, {"ingredients": [None]}),
        requests.Timeout("slow"),
    ])
    def test_extract_falls_back_to_keywords(self, response):
        client, _ = make_client({"/api/v1/ingredients/extract": response})

        assert client.extract_ingredients("chicken and spinach", "user-1") == ["chicken", "spinach"]

    def test_extract_blank_transcript(self):
        client, session = make_client({})

        assert client.extract_ingredients("   ", "user-1") == []
        assert session.requests == []

    def test_extract_requires_user(self):
        client, _ = make_client({})

        with pytest.raises(RecipeClientError):
            client.extract_ingredients("chicken", "")

    def test_payment_intent(self):
        client, session = make_client({
            "/api/v1/payments/intent": FakeResponse(200, {"clientSecret": "cs", "paymentIntentId": "pi_1"})
        })

        result = client.create_payment_intent("user-1")

        assert result.payment_intent_id == "pi_1"
        assert session.requests[0]["json"] == {"amount": 99, "currency": "usd", "userId": "user-1"}

    def test_payment_intent_error(self):
        client, _ = make_client({"/api/v1/payments/intent": FakeResponse(500, {"error": "Your card was declined."})})

        with pytest.raises(RecipeClientError, match="declined"):
            client.create_payment_intent("user-1")

    @pytest.mark.parametrize("response,message", [
        (FakeResponse(502, ["bad gateway"]), "Server error: 502"),
        (FakeResponse(200, ["cs", "pi_1"]), "Invalid payment intent"),
    ])
    def test_payment_intent_unexpected_body(self, response, message):
        client, _ = make_client({"/api/v1/payments/intent": response})

        with pytest.raises(RecipeClientError, match=message):
            client.create_payment_intent("user-1")

    def test_health(self):
        client, _ = make_client({"/health": FakeResponse(200, {"status": "OK"})})
        assert client.check_health() is True

        client, _ = make_client({"/health": requests.ConnectionError("down")})
        assert client.check_health() is False


class TestRecipeSession:
    """Tests for the generation allowance."""

    def make_session(self, recipe_response, image_response=None, allowance=3):
        client, fake = make_client({
            "/api/v1/recipes/generate": recipe_response,
            "/api/v1/images/generate": image_response or FakeResponse(200, {"imageUrl": "https://x/img.jpg"})
        })
        return RecipeSession(client, "user-1", allowance=allowance), fake

    def test_generation_uses_allowance(self):
        session, _ = self.make_session(FakeResponse(200, RECIPE))

        recipe = session.generate(["rice", "eggs"])

        assert recipe.image == "https://x/img.jpg"
        assert session.remaining == 2
        assert session.history == [recipe]

    def test_image_failure_keeps_recipe(self):
        session, _ = self.make_session(FakeResponse(200, RECIPE), FakeResponse(500, {"error": "boom"}))

        recipe = session.generate(["rice"])

        assert recipe.image is None
        assert session.remaining == 2

    def test_unexpected_image_body_keeps_recipe(self):
        """Test a malformed image response does not lose the recipe."""
        session, _ = self.make_session(FakeResponse(200, RECIPE), FakeResponse(200, ["https://x/img.jpg"]))

        recipe = session.generate(["rice"])

        assert recipe.title == "Fried Rice"
        assert recipe.image is None
        assert session.remaining == 2

    def test_failure_does_not_use_allowance(self):
        session, _ = self.make_session(FakeResponse(500, {"error": "Failed to generate recipe. Please try again."}))

        with pytest.raises(RecipeClientError):
            session.generate(["rice"])
        assert session.remaining == 3

    def test_no_generations_left(self):
        session, fake = self.make_session(FakeResponse(200, RECIPE), allowance=1)
        session.generate(["rice"])

        with pytest.raises(NoGenerationsLeft):
            session.generate(["rice"])
        assert len([r for r in fake.requests if r["url"].endswith("/recipes/generate")]) == 1


class TestCli:
    """Tests for tools/recipe_cli.py."""

    def test_dictate_stops_at_end_of_input(self):
        stream = io.StringIO("I have chicken\n\nand some garlic\n")

        assert recipe_cli.dictate(stream) == "I have chicken and some garlic"

    def test_dictate_stops_on_silence(self):
        """Test the session ends once the silence timeout passes."""
        class SlowStream:
            def __iter__(self):
                yield "eggs\n"
                time.sleep(1.0)
                yield "ignored\n"

        acc = TranscriptAccumulator(silence_timeout=0.2, max_duration=5.0)

        assert recipe_cli.dictate(SlowStream(), accumulator=acc, poll_interval=0.01) == "eggs"

    def test_main_json_output(self, monkeypatch, capsys):
        monkeypatch.setattr(
            RecipeServiceClient,
            "generate_recipe",
            lambda self, ingredients, user_id, servings=4: GeneratedRecipe(**RECIPE)
        )

        recipe_cli.main(["-i", "rice,eggs", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["title"] == "Fried Rice"

    def test_main_requires_ingredients(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            recipe_cli.main([])
        assert exc_info.value.code == 1
