"""
Shared pytest fixtures and test configuration for quiz pipeline tests.
Isolates tests from external dependencies (Anthropic API, real sleeping) for fast, reliable execution.
"""

import json
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def mock_config():
    """Mock configuration with test API keys."""
    config = Mock()
    config.ANTHROPIC_API_KEY = "test_anthropic_key"
    config.ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
    config.MAX_TOKENS = 4096
    config.TEMPERATURE = 0.4
    config.CHUNK_SIZE = 500
    config.CHUNK_OVERLAP = 50
    config.MAX_CONTEXT_CHUNKS = 0
    config.MIN_QUESTIONS = 3
    config.MAX_QUESTIONS = 20
    config.PASSING_THRESHOLD = 70.0
    config.HISTORY_WINDOW = 5
    config.VALIDATION_PASSES = 2
    config.MAX_RETRIES = 3
    config.RETRY_INITIAL_DELAY = 5.0
    config.RETRY_MAX_TOTAL_DELAY = None
    return config


@pytest.fixture
def offline_config(mock_config):
    """Configuration without an API key (deterministic fallback mode)."""
    mock_config.ANTHROPIC_API_KEY = ""
    return mock_config


@pytest.fixture
def sample_course_text():
    """Three paragraphs of course material."""
    return (
        "Photosynthesis converts light energy into chemical energy. "
        "It takes place in the chloroplasts of plant cells.\n\n"
        "The light-dependent reactions happen in the thylakoid membranes. "
        "They produce ATP and NADPH while releasing oxygen.\n\n"
        "The Calvin cycle uses ATP and NADPH to fix carbon dioxide into sugars. "
        "It runs in the stroma of the chloroplast."
    )


@pytest.fixture
def sample_course(sample_course_text):
    from models import Course

    return Course(id=1, title="Introduction to Photosynthesis", content=sample_course_text)


@pytest.fixture
def sample_chunks():
    """Five small chunks of one course."""
    from models import Chunk

    texts = [
        "Cells are the basic unit of life.",
        "Mitochondria produce ATP through respiration.",
        "Ribosomes synthesize proteins from amino acids.",
        "The nucleus stores genetic information as DNA.",
        "Chloroplasts capture light for photosynthesis.",
    ]
    chunks = []
    offset = 0
    for index, text in enumerate(texts):
        chunks.append(
            Chunk(
                course_id=1,
                index=index,
                text=text,
                start_offset=offset,
                end_offset=offset + len(text),
            )
        )
        offset += len(text) + 2
    return chunks


@pytest.fixture
def chunk_store(sample_chunks):
    """ChunkStore pre-loaded with the sample chunks for course 1."""
    from chunk_store import ChunkStore

    store = ChunkStore()
    store.replace(1, sample_chunks)
    return store


@pytest.fixture
def recorded_sleeps():
    """List that collects the delays a RetryPolicy would have slept."""
    return []


@pytest.fixture
def retry_policy(recorded_sleeps):
    """RetryPolicy that records delays instead of sleeping."""
    from retry_policy import RetryPolicy

    return RetryPolicy(max_attempts=3, initial_delay=5.0, sleep=recorded_sleeps.append)


@pytest.fixture
def mock_generator():
    """Mock AIGenerator that is configured and returns nothing by default."""
    generator = Mock()
    generator.is_available = True
    generator.model = "claude-sonnet-4-20250514"
    return generator


def _question(text, correct=0, source="Source excerpt"):
    return {
        "question_text": text,
        "options": [
            {"text": "Option A", "explanation": "A"},
            {"text": "Option B", "explanation": "B"},
            {"text": "Option C", "explanation": "C"},
            {"text": "Option D", "explanation": "D"},
        ],
        "correct_option_index": correct,
        "explanation": "Because the course says so.",
        "source_context": source,
    }


@pytest.fixture
def quiz_response_json():
    """Well-formed quiz payload with three questions."""
    return json.dumps(
        {
            "questions": [
                _question("Where does photosynthesis take place?", 1, "chloroplasts"),
                _question("What do light reactions produce?", 2, "ATP and NADPH"),
                _question("Where does the Calvin cycle run?", 3, "stroma"),
            ]
        }
    )


@pytest.fixture
def evaluation_response_json():
    return json.dumps(
        {
            "feedback": "Great work on the light reactions!",
            "strengths": ["Light reactions"],
            "weaknesses": ["Calvin cycle"],
            "recommendations": ["Review the stroma section"],
            "recommended_difficulty": "EXPERT",
            "course_validated": True,
        }
    )


@pytest.fixture
def make_quiz():
    """Factory for quizzes with `count` questions whose correct answer is option 0."""
    from models import AnswerOption, DifficultyLevel, GeneratedQuestion, Provenance, Quiz

    def _make(count=5, difficulty=DifficultyLevel.MEDIUM, student_id=7, course_id=1):
        questions = [
            GeneratedQuestion(
                text=f"Question {i + 1}",
                options=[AnswerOption(text=f"Option {n}") for n in range(4)],
                correct_option_index=0,
                source_excerpt=f"Topic {i + 1}",
            )
            for i in range(count)
        ]
        return Quiz(
            course_id=course_id,
            student_id=student_id,
            title="Quiz: Test Course",
            difficulty=difficulty,
            questions=questions,
            provenance=Provenance(generated_by_model=False, detail="fallback: test"),
        )

    return _make


@pytest.fixture
def answer_quiz():
    """Build a submission answering the first `correct` questions correctly and the rest wrong."""
    from models import QuizSubmission

    def _answer(quiz, correct, student_id=None):
        answers = {}
        for position, question in enumerate(quiz.questions):
            if position < correct:
                answers[question.id] = question.correct_option_index
            else:
                answers[question.id] = (question.correct_option_index + 1) % 4
        return QuizSubmission(
            quiz_id=quiz.id,
            student_id=quiz.student_id if student_id is None else student_id,
            answers=answers,
        )

    return _answer
