"""Onboarding survey that leads into the paid recipe generator."""

from dataclasses import dataclass, asdict
from typing import Dict, List

from app.core.errors import SurveyError


@dataclass(frozen=True)
class SurveyQuestion:
    """A multiple choice survey question."""
    id: str
    question: str
    options: List[str]

    def to_dict(self) -> dict:
        return asdict(self)


QUESTIONS: List[SurveyQuestion] = [
    SurveyQuestion(
        id="challenge",
        question="What's the biggest challenge you face when trying to decide what to cook?",
        options=[
            "I never know what I'm in the mood for",
            "I don't have the right ingredients",
            "I get overwhelmed by too many options",
            "I'm not confident in the kitchen",
            "I usually just end up ordering food",
        ],
    ),
    SurveyQuestion(
        id="ingredients",
        question="Do you ever find yourself stuck with a few random ingredients and no idea how to use them?",
        options=[
            "Yes, all the time",
            "Occasionally",
            "Rarely",
            "No, I usually know what to make",
        ],
    ),
    SurveyQuestion(
        id="confidence",
        question="How confident are you in your cooking skills?",
        options=[
            "I'm a total beginner",
            "I can follow basic recipes",
            "I'm comfortable experimenting",
            "I'm experienced and love to cook",
        ],
    ),
    SurveyQuestion(
        id="barriers",
        question="What usually stops you from cooking at home more often?",
        options=[
            "Not enough time",
            "I don't know what to make",
            "Cooking feels too complicated",
            "Grocery shopping is a hassle",
            "I don't enjoy cooking",
        ],
    ),
    SurveyQuestion(
        id="decision",
        question="When you're hungry, how do you decide what to eat?",
        options=[
            "I check what ingredients I have",
            "I scroll social media or Google recipes",
            "I go with my usual go-to meal",
            "I order takeout or delivery",
            "I ask someone else what they want",
        ],
    ),
    SurveyQuestion(
        id="recipe-search",
        question="Have you tried searching for recipes based on ingredients you already have?",
        options=[
            "Yes, but the results weren't helpful",
            "Yes, and it worked okay",
            "No, I didn't know that was possible",
            "No, I usually just search by meal type or cuisine",
        ],
    ),
]

_QUESTIONS_BY_ID = {q.id: q for q in QUESTIONS}


def get_question(question_id: str) -> SurveyQuestion:
    """Look up a question by id."""
    try:
        return _QUESTIONS_BY_ID[question_id]
    except KeyError:
        raise SurveyError(f"Unknown survey question: {question_id}")


def progress(index: int) -> float:
    """Percentage shown on the progress bar while viewing question ``index``."""
    if index < 0 or index >= len(QUESTIONS):
        raise SurveyError(f"Question index out of range: {index}")
    return (index + 1) / len(QUESTIONS) * 100


def validate_answers(answers: Dict[str, str]) -> Dict[str, str]:
    """Check that every question is answered with one of its options.

    Returns the answers in questionnaire order.
    """
    for question_id, answer in answers.items():
        question = get_question(question_id)
        if answer not in question.options:
            raise SurveyError(f"Invalid answer for '{question_id}': {answer}")

    missing = [q.id for q in QUESTIONS if q.id not in answers]
    if missing:
        raise SurveyError(f"Unanswered survey questions: {', '.join(missing)}")

    return {q.id: answers[q.id] for q in QUESTIONS}


def build_offer(settings) -> dict:
    """Describe the paid access unlocked by completing the survey."""
    return {
        "product": settings.product_code,
        "description": (
            f"{settings.generations_per_purchase} custom recipe generations "
            "based on your available ingredients"
        ),
        "price_cents": settings.price_cents,
        "currency": settings.currency,
        "generations": settings.generations_per_purchase
    }
