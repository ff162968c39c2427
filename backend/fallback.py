"""
Deterministic stand-ins for model output.

Used when no API key is configured, retries are exhausted or the model's
output cannot be parsed, so a request always yields a usable quiz,
evaluation or flashcard set.
"""

import re

from difficulty import next_difficulty
from models import AnswerOption, DifficultyLevel, Evaluation, Flashcard, GeneratedQuestion

EXCERPT_LENGTH = 100
OPTION_LENGTH = 80
DISTRACTOR_COUNT = 3
PASSING_THRESHOLD = 70.0
EXCELLENT_SCORE = 90
PARTIAL_SCORE = 50

_PARAGRAPHS = re.compile(r"\n{2,}")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def _shorten(text: str, limit: int) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def _segments(context: str) -> list[str]:
    segments = [p.strip() for p in _PARAGRAPHS.split(context) if p.strip()]
    return segments or [context.strip() or "Course content"]


def first_sentence(text: str) -> str:
    return _SENTENCE_END.split(text.strip(), maxsplit=1)[0]


def fallback_questions(context: str, question_count: int) -> list[GeneratedQuestion]:
    """
    Build `question_count` questions from successive context segments.

    The correct option is the first sentence of the segment; the three
    distractors are labelled placeholders. The correct position rotates
    through the four slots so it is not always the first option.
    """
    segments = _segments(context)
    questions = []
    for i in range(question_count):
        segment = segments[i % len(segments)]
        sentence = first_sentence(segment)

        correct = AnswerOption(
            text=_shorten(sentence, OPTION_LENGTH),
            rationale="Taken from the course content.",
        )
        distractors = [
            AnswerOption(
                text=f"Distractor option {n}",
                rationale="Incorrect - not from the course content.",
            )
            for n in range(1, DISTRACTOR_COUNT + 1)
        ]
        correct_index = i % (DISTRACTOR_COUNT + 1)
        options = distractors[:correct_index] + [correct] + distractors[correct_index:]

        questions.append(
            GeneratedQuestion(
                text=f"Question {i + 1}: Which statement is made in this section of the course?",
                options=options,
                correct_option_index=correct_index,
                rationale="This statement appears in the course material.",
                source_excerpt=_shorten(sentence, EXCERPT_LENGTH),
            )
        )
    return questions


def fallback_evaluation(
    current: DifficultyLevel, score_percent: float, passing_threshold: float = PASSING_THRESHOLD
) -> Evaluation:
    """
    Rule-based feedback by score band, with the standard difficulty transition.

    The course is validated exactly when the score reaches `passing_threshold`,
    so the flag always agrees with the result's `passed`.
    """
    if score_percent >= passing_threshold and score_percent >= EXCELLENT_SCORE:
        evaluation = Evaluation(
            feedback="Excellent performance! You've mastered this level.",
            strengths=["Excellent understanding", "Strong grasp of concepts"],
            weaknesses=[],
            recommendations=["Ready for the next challenge!"],
            course_validated=True,
        )
    elif score_percent >= passing_threshold:
        evaluation = Evaluation(
            feedback="Good job! You passed the quiz.",
            strengths=["Good understanding"],
            weaknesses=["Minor areas to review"],
            recommendations=["Review incorrect answers before moving on"],
            course_validated=True,
        )
    elif score_percent >= PARTIAL_SCORE:
        evaluation = Evaluation(
            feedback="You're making progress. Keep practicing!",
            strengths=["Effort shown", "Partial understanding"],
            weaknesses=["Some concepts need more review"],
            recommendations=["Focus on the topics you missed"],
            course_validated=False,
        )
    else:
        evaluation = Evaluation(
            feedback="Keep studying! Review the material carefully.",
            strengths=["Taking initiative to learn"],
            weaknesses=["Core concepts need reinforcement"],
            recommendations=["Re-read the course content", "Try easier questions first"],
            course_validated=False,
        )

    evaluation.recommended_difficulty = next_difficulty(current, score_percent)
    return evaluation


def fallback_flashcards(context: str, count: int) -> list[Flashcard]:
    segments = _segments(context)
    cards = []
    for i in range(count):
        segment = segments[i % len(segments)]
        cards.append(
            Flashcard(
                front=f"Key idea {i + 1}",
                back=_shorten(first_sentence(segment), EXCERPT_LENGTH * 2),
            )
        )
    return cards
