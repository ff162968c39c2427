import logging
from typing import Protocol

from models import CourseId, EnrollmentProgress, StudentId

logger = logging.getLogger(__name__)

VALIDATION_THRESHOLD = 70.0
VALIDATION_PASSES = 2
PROGRESS_PER_PASS = 30
MAX_PARTIAL_PROGRESS = 90


class EnrollmentStore(Protocol):
    """Enrollment state the tracker reads and writes"""

    def get_passed_count(self, student_id: StudentId, course_id: CourseId) -> int: ...

    def set_progress(
        self, student_id: StudentId, course_id: CourseId, completed: bool, percent: int
    ) -> None: ...

    def get_progress(self, student_id: StudentId, course_id: CourseId) -> EnrollmentProgress: ...


class InMemoryEnrollmentStore:
    """
    Keeps progress per (student, course) in memory.

    Passed counts are read from the quiz store so they always reflect
    persisted results.
    """

    def __init__(self, quiz_store):
        self.quiz_store = quiz_store
        self._progress: dict[tuple, EnrollmentProgress] = {}

    def get_passed_count(self, student_id: StudentId, course_id: CourseId) -> int:
        return self.quiz_store.count_passed(student_id, course_id)

    def set_progress(
        self, student_id: StudentId, course_id: CourseId, completed: bool, percent: int
    ) -> None:
        self._progress[(student_id, course_id)] = EnrollmentProgress(
            student_id=student_id,
            course_id=course_id,
            course_completed=completed,
            progress_percent=max(0, min(100, percent)),
        )

    def get_progress(self, student_id: StudentId, course_id: CourseId) -> EnrollmentProgress:
        return self._progress.get(
            (student_id, course_id),
            EnrollmentProgress(student_id=student_id, course_id=course_id),
        )


class ProgressTracker:
    """Sole writer of course-completion state from the quiz pipeline"""

    def __init__(
        self,
        store: EnrollmentStore,
        threshold: float = VALIDATION_THRESHOLD,
        required_passes: int = VALIDATION_PASSES,
    ):
        self.store = store
        self.threshold = threshold
        self.required_passes = required_passes

    def on_result(
        self, student_id: StudentId, course_id: CourseId, score_percent: float
    ) -> EnrollmentProgress:
        """
        Update progress after a result has been persisted.

        The passed count read from the store already includes the current
        result when it passed. The course is validated when the current score
        passes and the cumulative count reaches `required_passes`; otherwise
        progress is 30% per passed attempt, capped at 90%. A validated course
        stays completed at 100% whatever later attempts score.
        """
        current = self.store.get_progress(student_id, course_id)
        if current.course_completed:
            logger.info("Course %s already validated for student %s", course_id, student_id)
            return current

        passed_count = self.store.get_passed_count(student_id, course_id)

        if passed_count >= self.required_passes and score_percent >= self.threshold:
            completed, percent = True, 100
            logger.info("Course %s validated for student %s", course_id, student_id)
        else:
            completed, percent = False, min(MAX_PARTIAL_PROGRESS, passed_count * PROGRESS_PER_PASS)

        self.store.set_progress(student_id, course_id, completed, percent)
        return EnrollmentProgress(
            student_id=student_id,
            course_id=course_id,
            course_completed=completed,
            progress_percent=percent,
        )
