"""
Quiz agent: the coordinator of the content-to-quiz pipeline.

The agent is stateless between requests. Every collaborator (context
assembler, generator, retry policy, stores, evaluator, progress tracker) is
injected, and each call decides difficulty, retrieves context, drives
generation and falls back to deterministic output when generation is
unavailable.
"""

import logging

from ai_generator import AIGenerator
from context_assembler import ContextAssembler
from difficulty import HISTORY_WINDOW, initial_difficulty
from errors import GenerationError, NoContentIndexedError, OwnershipError, ParseError
from evaluator import Evaluator
from fallback import fallback_flashcards, fallback_questions
from models import (
    Course,
    CourseId,
    DifficultyLevel,
    Flashcard,
    GeneratedQuestion,
    Provenance,
    Quiz,
    QuizResult,
    QuizSpec,
    QuizSubmission,
    StudentId,
)
from progress import ProgressTracker
from prompts import build_flashcard_prompt, build_quiz_prompt
from quiz_store import QuizStore
from response_parser import parse_flashcards, parse_quiz
from retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

MIN_QUESTIONS = 3
MAX_QUESTIONS = 20

FALLBACK_NOT_CONFIGURED = "fallback: generation not configured"
FALLBACK_UNAVAILABLE = "fallback: generation unavailable"
FALLBACK_PARSE_FAILED = "fallback: parse failed"


def clamp_question_count(requested: int, low: int = MIN_QUESTIONS, high: int = MAX_QUESTIONS) -> int:
    return max(low, min(high, requested))


class QuizAgent:
    """Generates quizzes, takes submissions and tracks course validation"""

    def __init__(
        self,
        assembler: ContextAssembler,
        generator: AIGenerator | None,
        retry_policy: RetryPolicy,
        quiz_store: QuizStore,
        evaluator: Evaluator,
        progress_tracker: ProgressTracker,
        max_context_chunks: int = 0,
        min_questions: int = MIN_QUESTIONS,
        max_questions: int = MAX_QUESTIONS,
        history_window: int = HISTORY_WINDOW,
    ):
        self.assembler = assembler
        self.generator = generator
        self.retry_policy = retry_policy
        self.quiz_store = quiz_store
        self.evaluator = evaluator
        self.progress_tracker = progress_tracker
        self.max_context_chunks = max_context_chunks
        self.min_questions = min_questions
        self.max_questions = max_questions
        self.history_window = history_window

    @property
    def generation_enabled(self) -> bool:
        return self.generator is not None and self.generator.is_available

    def determine_difficulty(self, spec: QuizSpec) -> DifficultyLevel:
        """Requested difficulty verbatim, otherwise adapted from the student's history."""
        if spec.requested_difficulty is not None:
            return spec.requested_difficulty
        history = self.quiz_store.score_history(spec.student_id, spec.course_id)
        return initial_difficulty(history, window=self.history_window)

    def generate(self, course: Course, spec: QuizSpec) -> Quiz:
        """
        Generate and persist a quiz for a student on a course.

        Raises:
            NoContentIndexedError: the course has no chunks
            ValueError: the request targets a different course
        """
        if spec.course_id != course.id:
            raise ValueError(f"Quiz request targets course {spec.course_id}, not {course.id}")

        logger.info(
            "Starting quiz generation for student %s on course %s", spec.student_id, course.id
        )

        difficulty = self.determine_difficulty(spec)
        question_count = clamp_question_count(
            spec.requested_question_count, self.min_questions, self.max_questions
        )
        logger.info("Determined difficulty=%s, questions=%d", difficulty.value, question_count)

        context = self.assembler.context_for_generation(course.id, self.max_context_chunks)
        if not context.strip():
            raise NoContentIndexedError(course.id)
        logger.info("Retrieved %d characters of context", len(context))

        questions, provenance = self._generate_questions(course, difficulty, question_count, context)

        quiz = Quiz(
            course_id=course.id,
            student_id=spec.student_id,
            title=f"Quiz: {course.title}",
            difficulty=difficulty,
            questions=questions,
            provenance=provenance,
        )
        self.quiz_store.save_quiz(quiz)

        logger.info(
            "Quiz %s generated with %d questions (%s)",
            quiz.id,
            len(quiz.questions),
            provenance.model_used if provenance.generated_by_model else provenance.detail,
        )
        return quiz

    def _generate_questions(
        self, course: Course, difficulty: DifficultyLevel, question_count: int, context: str
    ) -> tuple[list[GeneratedQuestion], Provenance]:
        if not self.generation_enabled:
            logger.warning("No generation client configured - using deterministic quiz")
            return self._fallback(context, question_count, FALLBACK_NOT_CONFIGURED)

        prompt = build_quiz_prompt(course.title, difficulty.value, question_count, context)
        try:
            raw = self.retry_policy.call(self.generator.generate, prompt)
        except GenerationError as e:
            logger.warning("Quiz generation failed after retries, using fallback: %s", e)
            return self._fallback(context, question_count, FALLBACK_UNAVAILABLE)

        try:
            questions = parse_quiz(raw)
        except ParseError as e:
            logger.warning("Could not parse quiz response (%s), using fallback", e)
            return self._fallback(context, question_count, FALLBACK_PARSE_FAILED)

        return questions, Provenance(
            generated_by_model=True,
            model_used=self.generator.model,
            detail="generated",
        )

    @staticmethod
    def _fallback(
        context: str, question_count: int, reason: str
    ) -> tuple[list[GeneratedQuestion], Provenance]:
        return fallback_questions(context, question_count), Provenance(
            generated_by_model=False,
            model_used=None,
            detail=reason,
        )

    def submit(self, student_id: StudentId, submission: QuizSubmission) -> QuizResult:
        """
        Evaluate a submission, persist its result and update course progress.

        Raises:
            QuizNotFoundError: unknown quiz id
            OwnershipError: quiz or submission belongs to another student
            AlreadySubmittedError: quiz already has a result
        """
        quiz = self.quiz_store.get_quiz(submission.quiz_id)
        logger.info("Evaluating quiz %s for student %s", quiz.id, student_id)

        if submission.student_id != student_id or quiz.student_id != student_id:
            raise OwnershipError(quiz.id, student_id)

        result = self.evaluator.evaluate(quiz, submission)
        self.quiz_store.save_result(quiz, result)

        progress = self.progress_tracker.on_result(student_id, quiz.course_id, result.score_percent)

        logger.info(
            "Evaluation complete - passed=%s, recommended_difficulty=%s, progress=%d%%",
            result.passed,
            result.recommended_next_difficulty.value,
            progress.progress_percent,
        )
        return result

    def recommendations(self, student_id: StudentId, course_id: CourseId) -> list[str]:
        """Study advice from the student's average score on the course."""
        history = self.quiz_store.score_history(student_id, course_id)
        if not history:
            return [
                "Start with an easy quiz to assess your current understanding.",
                "Read through the course material before attempting quizzes.",
            ]

        average = sum(history) / len(history)
        if average >= 80:
            return [
                "Excellent progress! Try harder difficulty levels.",
                "Consider helping other students with this topic.",
            ]
        if average >= 60:
            return [
                "Good progress. Review the topics where you made mistakes.",
                "Practice with medium difficulty quizzes to reinforce learning.",
            ]
        return [
            "Focus on understanding the core concepts first.",
            "Re-read the course material and take notes.",
            "Start with easier quizzes to build confidence.",
        ]

    def flashcards(self, course_id: CourseId, count: int = 5) -> list[Flashcard]:
        """
        Study flashcards for a course, from the model when available.

        Raises:
            NoContentIndexedError: the course has no chunks
        """
        count = max(1, count)
        context = self.assembler.context_for_generation(course_id, self.max_context_chunks)
        if not context.strip():
            raise NoContentIndexedError(course_id)

        if not self.generation_enabled:
            return fallback_flashcards(context, count)

        try:
            raw = self.retry_policy.call(
                self.generator.generate, build_flashcard_prompt(count, context)
            )
            return parse_flashcards(raw)[:count]
        except (GenerationError, ParseError) as e:
            logger.warning("Flashcard generation failed, using fallback: %s", e)
            return fallback_flashcards(context, count)
