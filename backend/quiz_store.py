import threading

from errors import QuizNotFoundError
from models import CourseId, Quiz, QuizResult, StudentId


class QuizStore:
    """In-memory keyed storage for quizzes and their results"""

    def __init__(self):
        self._quizzes: dict[str, Quiz] = {}
        self._results: list[QuizResult] = []
        self._lock = threading.Lock()

    def save_quiz(self, quiz: Quiz) -> Quiz:
        with self._lock:
            self._quizzes[quiz.id] = quiz
        return quiz

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)
        return quiz

    def save_result(self, quiz: Quiz, result: QuizResult) -> QuizResult:
        """Attach the result to its quiz and record it; a quiz takes one result only."""
        with self._lock:
            quiz.attach_result(result)
            self._results.append(result)
        return result

    def results_for(self, student_id: StudentId, course_id: CourseId) -> list[QuizResult]:
        """Results of a student on a course, most recent first."""
        with self._lock:
            matching = [
                r for r in self._results if r.student_id == student_id and r.course_id == course_id
            ]
        return list(reversed(matching))

    def score_history(self, student_id: StudentId, course_id: CourseId) -> list[float]:
        return [r.score_percent for r in self.results_for(student_id, course_id)]

    def count_passed(self, student_id: StudentId, course_id: CourseId) -> int:
        return sum(1 for r in self.results_for(student_id, course_id) if r.passed)

    def quizzes_for(self, student_id: StudentId, course_id: CourseId | None = None) -> list[Quiz]:
        with self._lock:
            quizzes = list(self._quizzes.values())
        return [
            q
            for q in quizzes
            if q.student_id == student_id and (course_id is None or q.course_id == course_id)
        ]
