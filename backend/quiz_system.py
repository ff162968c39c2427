import logging
import time
from typing import Callable

from ai_generator import AIGenerator
from chunk_store import ChunkStore
from chunker import Chunker
from context_assembler import ContextAssembler
from course_indexer import CourseContentSource, CourseIndexer
from evaluator import Evaluator
from models import (
    Chunk,
    ChunkStats,
    Course,
    CourseId,
    EnrollmentProgress,
    Flashcard,
    Quiz,
    QuizResult,
    QuizSpec,
    QuizSubmission,
    StudentId,
)
from progress import InMemoryEnrollmentStore, ProgressTracker
from quiz_agent import QuizAgent
from quiz_store import QuizStore
from retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


class QuizSystem:
    """Main orchestrator for the content-to-quiz pipeline"""

    def __init__(
        self,
        config,
        content_source: CourseContentSource | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config

        # Initialize core components
        self.chunker = Chunker(target_size=config.CHUNK_SIZE, overlap=config.CHUNK_OVERLAP)
        self.chunk_store = ChunkStore()
        self.quiz_store = QuizStore()
        self.enrollment_store = InMemoryEnrollmentStore(self.quiz_store)
        self.indexer = CourseIndexer(self.chunker, self.chunk_store, content_source)
        self.assembler = ContextAssembler(self.chunk_store)

        self.generator = AIGenerator(
            config.ANTHROPIC_API_KEY,
            config.ANTHROPIC_MODEL,
            max_tokens=config.MAX_TOKENS,
            temperature=config.TEMPERATURE,
        )
        if not self.generator.is_available:
            logger.warning("ANTHROPIC_API_KEY not configured - running in deterministic mode")

        self.retry_policy = RetryPolicy(
            max_attempts=config.MAX_RETRIES,
            initial_delay=config.RETRY_INITIAL_DELAY,
            max_total_delay=config.RETRY_MAX_TOTAL_DELAY,
            sleep=sleep,
        )
        self.evaluator = Evaluator(
            self.generator, self.retry_policy, passing_threshold=config.PASSING_THRESHOLD
        )
        self.progress_tracker = ProgressTracker(
            self.enrollment_store,
            threshold=config.PASSING_THRESHOLD,
            required_passes=config.VALIDATION_PASSES,
        )
        self.agent = QuizAgent(
            self.assembler,
            self.generator,
            self.retry_policy,
            self.quiz_store,
            self.evaluator,
            self.progress_tracker,
            max_context_chunks=config.MAX_CONTEXT_CHUNKS,
            min_questions=config.MIN_QUESTIONS,
            max_questions=config.MAX_QUESTIONS,
            history_window=config.HISTORY_WINDOW,
        )

    def index_course(self, course: Course) -> list[Chunk]:
        return self.indexer.index(course)

    def remove_course(self, course_id: CourseId) -> None:
        self.indexer.remove(course_id)

    def generate_quiz(self, course: Course, spec: QuizSpec) -> Quiz:
        return self.agent.generate(course, spec)

    def submit_quiz(self, student_id: StudentId, submission: QuizSubmission) -> QuizResult:
        return self.agent.submit(student_id, submission)

    def course_stats(self, course_id: CourseId) -> ChunkStats:
        return self.assembler.stats(course_id)

    def recommendations(self, student_id: StudentId, course_id: CourseId) -> list[str]:
        return self.agent.recommendations(student_id, course_id)

    def flashcards(self, course_id: CourseId, count: int = 5) -> list[Flashcard]:
        return self.agent.flashcards(course_id, count)

    def progress(self, student_id: StudentId, course_id: CourseId) -> EnrollmentProgress:
        return self.enrollment_store.get_progress(student_id, course_id)

    def close(self) -> None:
        self.generator.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
