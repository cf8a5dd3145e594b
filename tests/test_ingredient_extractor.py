"""Unit tests for ingredient extraction."""

import pytest
import sys
from pathlib import Path
from types import SimpleNamespace

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.errors import ExtractionError, ProviderNotConfigured
from app.core.ingredient_extractor import (
    GeminiIngredientExtractor,
    build_extraction_prompt,
    extract_ingredients_simple,
    parse_ingredient_list,
    sanitize_transcript
)


class FakeModel:
    def __init__(self, text):
        self.text = text
        self.prompts = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        return SimpleNamespace(text=self.text)


class TestSimpleExtraction:
    """Tests for the keyword fallback matcher."""

    def test_single_words(self):
        assert extract_ingredients_simple("chicken with garlic and lemon") == ["chicken", "garlic", "lemon"]

    def test_multi_word_first(self):
        """Test multi-word ingredients suppress their parts."""
        found = extract_ingredients_simple("I've got brown rice, olive oil and a bell pepper")

        assert found == ["bell pepper", "olive oil", "brown rice"]

    def test_plurals(self):
        """Test plural forms map to the vocabulary entry."""
        found = extract_ingredients_simple("tomatoes, potatoes and two eggs")

        assert found == ["tomato", "potato", "egg"]

    def test_small_misspelling(self):
        assert extract_ingredients_simple("some brocoli please") == ["broccoli"]

    def test_adjectives_are_not_ingredients(self):
        """Test words like "creamy" do not count as the ingredient they describe."""
        assert extract_ingredients_simple("something creamy and buttery with peppery rice") == ["rice"]

    def test_no_substring_false_positives(self):
        """Test words are matched whole, not as substrings."""
        assert extract_ingredients_simple("a prickly eggplant") == []

    def test_case_and_punctuation(self):
        assert extract_ingredients_simple("SALMON! Spinach?") == ["salmon", "spinach"]

    def test_nothing_found(self):
        assert extract_ingredients_simple("what should I cook tonight") == []
        assert extract_ingredients_simple("") == []


class TestParsing:
    """Tests for transcript and model output helpers."""

    def test_sanitize(self):
        assert sanitize_transcript("  eggs  ") == "eggs"
        assert len(sanitize_transcript("x" * 600)) == 500
        assert sanitize_transcript(12345) == "12345"

    def test_prompt(self):
        prompt = build_extraction_prompt("I have rice", 10)

        assert 'return a JSON array: "I have rice"' in prompt
        assert "Maximum 10 ingredients" in prompt

    def test_parse_list(self):
        assert parse_ingredient_list('["jasmine rice", " eggs ", ""]') == ["jasmine rice", "eggs"]

    def test_parse_fenced_list(self):
        assert parse_ingredient_list('```json\n["tofu"]\n```') == ["tofu"]

    def test_parse_caps_length(self):
        text = str([f"item{i}" for i in range(15)]).replace("'", '"')

        assert len(parse_ingredient_list(text)) == 10

    @pytest.mark.parametrize("text", ["not json", '{"ingredients": ["rice"]}', ""])
    def test_parse_rejects_bad_output(self, text):
        with pytest.raises(ExtractionError):
            parse_ingredient_list(text)


class TestGeminiIngredientExtractor:
    """Tests for the Gemini-backed extractor."""

    def test_extract(self):
        model = FakeModel('["jasmine rice", "scallions"]')
        extractor = GeminiIngredientExtractor(api_key="key", model=model)

        assert extractor.extract("jasmine rice and scallions") == ["jasmine rice", "scallions"]
        assert '"jasmine rice and scallions"' in model.prompts[0]

    def test_model_error(self):
        class Broken:
            def generate_content(self, prompt):
                raise RuntimeError("quota exceeded")

        extractor = GeminiIngredientExtractor(api_key="key", model=Broken())

        with pytest.raises(ExtractionError, match="Failed to extract ingredients"):
            extractor.extract("eggs")

    def test_missing_key(self):
        with pytest.raises(ProviderNotConfigured):
            GeminiIngredientExtractor(api_key=None).extract("eggs")
