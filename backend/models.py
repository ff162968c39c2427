from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from errors import AlreadySubmittedError

OPTIONS_PER_QUESTION = 4

CourseId = int | str
StudentId = int | str


def _new_id() -> str:
    return uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DifficultyLevel(str, Enum):
    """Totally ordered difficulty scale, EASY < MEDIUM < HARD < EXPERT"""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    EXPERT = "EXPERT"

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def harder(self) -> "DifficultyLevel":
        """Next level up, clamped at EXPERT"""
        levels = list(type(self))
        return levels[min(self.rank + 1, len(levels) - 1)]

    def easier(self) -> "DifficultyLevel":
        """Next level down, clamped at EASY"""
        levels = list(type(self))
        return levels[max(self.rank - 1, 0)]

    @classmethod
    def parse(cls, value) -> "DifficultyLevel | None":
        """Case-insensitive lookup; returns None for anything unrecognised."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

    # str comparison would order alphabetically, so compare by rank instead
    def __lt__(self, other):
        if not isinstance(other, DifficultyLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, DifficultyLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, DifficultyLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, DifficultyLevel):
            return NotImplemented
        return self.rank >= other.rank


class Course(BaseModel):
    """Minimal course record the pipeline needs"""

    id: CourseId
    title: str  # Used in prompts and quiz titles
    content: str | None = None  # Raw text content (PDF courses get theirs from the content source)


class Chunk(BaseModel):
    """Represents a bounded, overlapping segment of a course's normalized text"""

    model_config = ConfigDict(frozen=True)

    course_id: CourseId  # Which course this chunk belongs to
    index: int  # 0-based, contiguous per course
    text: str  # The actual text content
    start_offset: int  # Position in the normalized source text
    end_offset: int  # Exclusive end position in the normalized source text


class ChunkStats(BaseModel):
    chunk_count: int
    total_characters: int
    average_chunk_size: float


class QuizSpec(BaseModel):
    """Parameters of a single quiz generation request"""

    course_id: CourseId
    student_id: StudentId
    requested_difficulty: DifficultyLevel | None = None  # None = adapt from history
    requested_question_count: int = 5


class AnswerOption(BaseModel):
    text: str
    rationale: str = ""  # Why this option is correct/incorrect


class GeneratedQuestion(BaseModel):
    """A multiple-choice question with exactly four options and one correct index"""

    id: str = Field(default_factory=_new_id)
    text: str
    options: list[AnswerOption]
    correct_option_index: int
    rationale: str = ""
    source_excerpt: str = ""  # Course text the question was derived from

    @model_validator(mode="after")
    def _check_options(self):
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(
                f"question must have exactly {OPTIONS_PER_QUESTION} options, got {len(self.options)}"
            )
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError(f"correct_option_index {self.correct_option_index} out of range")
        return self

    def is_correct(self, selected_index: int | None) -> bool:
        return selected_index is not None and selected_index == self.correct_option_index


class Provenance(BaseModel):
    """Records whether a quiz came from the external model or the deterministic fallback"""

    generated_by_model: bool
    model_used: str | None = None  # Model identifier when generated externally
    detail: str = ""  # e.g. "fallback: parse failed"

    @property
    def is_fallback(self) -> bool:
        return not self.generated_by_model


class StudentAnswer(BaseModel):
    question_id: str
    selected_index: int | None = None  # None = question left unanswered
    correct_index: int

    @computed_field
    @property
    def is_correct(self) -> bool:
        return self.selected_index is not None and self.selected_index == self.correct_index


class Evaluation(BaseModel):
    """Feedback on a scored submission, from the model or the rule-based fallback"""

    feedback: str
    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendations: list[str] = []
    course_validated: bool = False
    recommended_difficulty: DifficultyLevel | None = None
    source: str = "fallback"  # "model" or "fallback"


class QuizResult(BaseModel):
    """Outcome of one quiz submission; score and pass state are derived"""

    id: str = Field(default_factory=_new_id)
    quiz_id: str
    student_id: StudentId
    course_id: CourseId
    total_questions: int
    correct_count: int
    passing_threshold: float = 70.0
    feedback_text: str = ""
    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendations: list[str] = []
    course_validated: bool = False
    recommended_next_difficulty: DifficultyLevel
    answers: list[StudentAnswer] = []
    feedback_source: str = "fallback"
    time_taken_seconds: int | None = None
    completed_at: datetime = Field(default_factory=_now)

    @computed_field
    @property
    def score_percent(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return 100.0 * self.correct_count / self.total_questions

    @computed_field
    @property
    def passed(self) -> bool:
        return self.score_percent >= self.passing_threshold


class Quiz(BaseModel):
    """A generated quiz; only the result may be attached after creation"""

    id: str = Field(default_factory=_new_id)
    course_id: CourseId
    student_id: StudentId
    title: str
    difficulty: DifficultyLevel
    questions: list[GeneratedQuestion]
    provenance: Provenance
    created_at: datetime = Field(default_factory=_now)
    result: QuizResult | None = None

    @property
    def is_submitted(self) -> bool:
        return self.result is not None

    def attach_result(self, result: QuizResult) -> None:
        if self.result is not None:
            raise AlreadySubmittedError(self.id)
        self.result = result


class QuizSubmission(BaseModel):
    quiz_id: str
    student_id: StudentId
    answers: dict[str, int] = {}  # question id -> selected option index
    time_taken_seconds: int | None = None


class EnrollmentProgress(BaseModel):
    student_id: StudentId
    course_id: CourseId
    course_completed: bool = False
    progress_percent: int = Field(default=0, ge=0, le=100)


class Flashcard(BaseModel):
    front: str  # Question or concept
    back: str  # Answer or explanation
