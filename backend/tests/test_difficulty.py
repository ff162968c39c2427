"""
Unit tests for adaptive difficulty and the deterministic fallbacks.
"""

import pytest

from difficulty import initial_difficulty, next_difficulty
from fallback import fallback_evaluation, fallback_flashcards, fallback_questions, first_sentence
from models import DifficultyLevel

EASY = DifficultyLevel.EASY
MEDIUM = DifficultyLevel.MEDIUM
HARD = DifficultyLevel.HARD
EXPERT = DifficultyLevel.EXPERT


@pytest.mark.unit
@pytest.mark.parametrize(
    "current, score, expected",
    [
        (EASY, 95, MEDIUM),
        (EXPERT, 95, EXPERT),
        (MEDIUM, 90, HARD),
        (MEDIUM, 60, MEDIUM),
        (MEDIUM, 50, MEDIUM),
        (MEDIUM, 40, EASY),
        (EASY, 10, EASY),
        (HARD, 89.9, HARD),
    ],
)
def test_next_difficulty(current, score, expected):
    """Test one-step adaptation with clamping."""
    assert next_difficulty(current, score) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "history, expected",
    [
        ([], MEDIUM),
        ([95, 92, 100], EXPERT),
        ([80, 70], HARD),
        ([60, 50, 40], MEDIUM),
        ([20, 30], EASY),
    ],
)
def test_initial_difficulty_from_average(history, expected):
    assert initial_difficulty(history) == expected


@pytest.mark.unit
def test_initial_difficulty_uses_most_recent_window():
    """Test that only the newest five scores count."""
    history = [95, 95, 95, 95, 95, 0, 0, 0, 0, 0]

    assert initial_difficulty(history) == EXPERT
    assert initial_difficulty(history, window=10) == EASY


@pytest.mark.unit
def test_fallback_questions_are_valid_and_grounded(sample_course_text):
    """Test deterministic questions built from the context."""
    questions = fallback_questions(sample_course_text, 5)

    assert len(questions) == 5
    for i, question in enumerate(questions):
        assert len(question.options) == 4
        assert question.correct_option_index == i % 4
        correct = question.options[question.correct_option_index].text
        assert not correct.startswith("Distractor option")
        assert question.text.startswith(f"Question {i + 1}:")

    # Segments are reused cyclically
    assert questions[0].options[0].text == "Photosynthesis converts light energy into chemical energy."
    assert questions[3].source_excerpt == questions[0].source_excerpt


@pytest.mark.unit
def test_fallback_questions_from_blank_context():
    """Test that even an empty context yields well-formed questions."""
    questions = fallback_questions("", 3)

    assert len(questions) == 3
    assert all(len(q.options) == 4 for q in questions)


@pytest.mark.unit
def test_fallback_questions_shorten_long_sentences():
    context = "word " * 100

    question = fallback_questions(context, 1)[0]

    assert len(question.options[0].text) <= 83
    assert question.options[0].text.endswith("...")
    assert len(question.source_excerpt) <= 103


@pytest.mark.unit
def test_first_sentence():
    assert first_sentence("One. Two. Three.") == "One."
    assert first_sentence("No terminator") == "No terminator"


@pytest.mark.unit
@pytest.mark.parametrize(
    "score, validated, feedback_start",
    [
        (95, True, "Excellent"),
        (75, True, "Good job"),
        (60, False, "You're making progress"),
        (20, False, "Keep studying"),
    ],
)
def test_fallback_evaluation_bands(score, validated, feedback_start):
    evaluation = fallback_evaluation(MEDIUM, score)

    assert evaluation.feedback.startswith(feedback_start)
    assert evaluation.course_validated is validated
    assert evaluation.recommended_difficulty == next_difficulty(MEDIUM, score)
    assert evaluation.source == "fallback"


@pytest.mark.unit
def test_fallback_flashcards(sample_course_text):
    cards = fallback_flashcards(sample_course_text, 4)

    assert [c.front for c in cards] == ["Key idea 1", "Key idea 2", "Key idea 3", "Key idea 4"]
    assert cards[1].back == "The light-dependent reactions happen in the thylakoid membranes."
    assert cards[3].back == cards[0].back


@pytest.mark.unit
@pytest.mark.parametrize(
    "score, threshold, validated, feedback_start",
    [
        (80, 85.0, False, "You're making progress"),
        (60, 60.0, True, "Good job"),
        (92, 95.0, False, "You're making progress"),
        (96, 95.0, True, "Excellent"),
    ],
)
def test_fallback_evaluation_respects_passing_threshold(score, threshold, validated, feedback_start):
    evaluation = fallback_evaluation(MEDIUM, score, passing_threshold=threshold)

    assert evaluation.course_validated is validated
    assert evaluation.feedback.startswith(feedback_start)
