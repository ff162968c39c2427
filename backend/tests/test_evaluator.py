"""
Unit tests for Evaluator.
Tests scoring, model feedback with rule-based progression, and fallback feedback.
"""

import pytest

from errors import AlreadySubmittedError, GenerationError, OwnershipError
from evaluator import Evaluator
from models import DifficultyLevel, QuizResult, QuizSubmission


@pytest.mark.critical
def test_four_of_five_scores_eighty_and_passes(make_quiz, answer_quiz, retry_policy):
    """Test the canonical scoring example without a generator."""
    quiz = make_quiz(count=5)
    evaluator = Evaluator(None, retry_policy)

    result = evaluator.evaluate(quiz, answer_quiz(quiz, 4))

    assert result.correct_count == 4
    assert result.total_questions == 5
    assert result.score_percent == 80.0
    assert result.passed is True
    assert result.feedback_source == "fallback"
    assert result.feedback_text == "Good job! You passed the quiz."
    assert result.course_validated is True
    assert result.recommended_next_difficulty == DifficultyLevel.MEDIUM


@pytest.mark.unit
def test_missing_answers_count_as_incorrect(make_quiz, retry_policy):
    quiz = make_quiz(count=4)
    first = quiz.questions[0]
    submission = QuizSubmission(
        quiz_id=quiz.id, student_id=quiz.student_id, answers={first.id: first.correct_option_index}
    )

    result = Evaluator(None, retry_policy).evaluate(quiz, submission)

    assert result.correct_count == 1
    assert result.score_percent == 25.0
    assert [a.selected_index for a in result.answers] == [0, None, None, None]
    assert result.recommended_next_difficulty == DifficultyLevel.EASY


@pytest.mark.unit
def test_result_is_not_attached_by_evaluator(make_quiz, answer_quiz, retry_policy):
    quiz = make_quiz(count=2)

    result = Evaluator(None, retry_policy).evaluate(quiz, answer_quiz(quiz, 2))

    assert isinstance(result, QuizResult)
    assert quiz.result is None


@pytest.mark.unit
def test_model_feedback_with_rule_based_progression(
    make_quiz, answer_quiz, retry_policy, mock_generator, evaluation_response_json
):
    """Test that model wording is used but difficulty and validation follow the rules."""
    quiz = make_quiz(count=5, difficulty=DifficultyLevel.HARD)
    mock_generator.generate.return_value = evaluation_response_json

    result = Evaluator(mock_generator, retry_policy).evaluate(quiz, answer_quiz(quiz, 3))

    assert result.feedback_source == "model"
    assert result.feedback_text == "Great work on the light reactions!"
    assert result.weaknesses == ["Calvin cycle"]
    # 60% keeps HARD even though the model suggested EXPERT
    assert result.recommended_next_difficulty == DifficultyLevel.HARD
    # 60% is below the pass mark even though the model claimed validation
    assert result.course_validated is False


@pytest.mark.unit
def test_weak_topics_sent_to_model(make_quiz, answer_quiz, retry_policy, mock_generator, evaluation_response_json):
    quiz = make_quiz(count=3)
    mock_generator.generate.return_value = evaluation_response_json

    Evaluator(mock_generator, retry_policy).evaluate(quiz, answer_quiz(quiz, 1))

    prompt = mock_generator.generate.call_args.args[0]
    assert "Topic 2; Topic 3" in prompt
    assert "Topic 1" not in prompt


@pytest.mark.unit
def test_generation_failure_falls_back_to_rules(
    make_quiz, answer_quiz, retry_policy, recorded_sleeps, mock_generator
):
    """Test that exhausted retries still produce a rule-based evaluation."""
    quiz = make_quiz(count=5)
    mock_generator.generate.side_effect = GenerationError("429 rate limit", retryable=True)

    result = Evaluator(mock_generator, retry_policy).evaluate(quiz, answer_quiz(quiz, 5))

    assert mock_generator.generate.call_count == 3
    assert recorded_sleeps == [5.0, 10.0]
    assert result.feedback_source == "fallback"
    assert result.feedback_text.startswith("Excellent")
    assert result.recommended_next_difficulty == DifficultyLevel.HARD


@pytest.mark.unit
def test_unparseable_model_feedback_falls_back(make_quiz, answer_quiz, retry_policy, mock_generator):
    quiz = make_quiz(count=2)
    mock_generator.generate.return_value = "Sorry, I can't do that."

    result = Evaluator(mock_generator, retry_policy).evaluate(quiz, answer_quiz(quiz, 0))

    assert mock_generator.generate.call_count == 1
    assert result.feedback_source == "fallback"
    assert result.feedback_text.startswith("Keep studying")


@pytest.mark.unit
def test_unavailable_generator_is_not_called(make_quiz, answer_quiz, retry_policy, mock_generator):
    mock_generator.is_available = False
    quiz = make_quiz(count=2)

    result = Evaluator(mock_generator, retry_policy).evaluate(quiz, answer_quiz(quiz, 2))

    mock_generator.generate.assert_not_called()
    assert result.feedback_source == "fallback"


@pytest.mark.critical
def test_already_submitted_quiz_rejected(make_quiz, answer_quiz, retry_policy):
    quiz = make_quiz(count=2)
    evaluator = Evaluator(None, retry_policy)
    quiz.attach_result(evaluator.evaluate(quiz, answer_quiz(quiz, 2)))

    with pytest.raises(AlreadySubmittedError):
        evaluator.evaluate(quiz, answer_quiz(quiz, 1))


@pytest.mark.critical
def test_submission_from_other_student_rejected(make_quiz, answer_quiz, retry_policy):
    quiz = make_quiz(count=2, student_id=7)

    with pytest.raises(OwnershipError):
        Evaluator(None, retry_policy).evaluate(quiz, answer_quiz(quiz, 2, student_id=8))


@pytest.mark.unit
def test_empty_quiz_scores_zero(make_quiz, retry_policy):
    quiz = make_quiz(count=0)
    submission = QuizSubmission(quiz_id=quiz.id, student_id=quiz.student_id)

    result = Evaluator(None, retry_policy).evaluate(quiz, submission)

    assert result.score_percent == 0.0
    assert result.passed is False


@pytest.mark.unit
def test_custom_passing_threshold(make_quiz, answer_quiz, retry_policy):
    quiz = make_quiz(count=5)

    result = Evaluator(None, retry_policy, passing_threshold=85.0).evaluate(quiz, answer_quiz(quiz, 4))

    assert result.passing_threshold == 85.0
    assert result.passed is False


@pytest.mark.unit
@pytest.mark.parametrize("threshold, correct", [(85.0, 4), (60.0, 3), (95.0, 9)])
def test_validation_agrees_with_passed_for_custom_threshold(
    make_quiz, answer_quiz, retry_policy, threshold, correct
):
    """Test that course_validated follows the configured pass mark."""
    quiz = make_quiz(count=5 if correct < 5 else 10)

    result = Evaluator(None, retry_policy, passing_threshold=threshold).evaluate(
        quiz, answer_quiz(quiz, correct)
    )

    assert result.course_validated is result.passed


@pytest.mark.unit
def test_model_feedback_validation_uses_custom_threshold(
    make_quiz, answer_quiz, retry_policy, mock_generator, evaluation_response_json
):
    quiz = make_quiz(count=5)
    mock_generator.generate.return_value = evaluation_response_json

    result = Evaluator(mock_generator, retry_policy, passing_threshold=85.0).evaluate(
        quiz, answer_quiz(quiz, 4)
    )

    assert result.feedback_source == "model"
    assert result.passed is False
    assert result.course_validated is False
