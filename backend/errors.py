"""
Exception taxonomy for the quiz pipeline.

Only NoContentIndexedError, AlreadySubmittedError, OwnershipError and
QuizNotFoundError reach callers. GenerationError and ParseError are raised
internally and absorbed by the deterministic fallbacks.
"""


class QuizPipelineError(Exception):
    """Base class for all pipeline errors"""


class NoContentIndexedError(QuizPipelineError):
    """Raised when a quiz is requested for a course with no indexed chunks"""

    def __init__(self, course_id):
        self.course_id = course_id
        super().__init__(f"No indexed content available for course {course_id}")


class GenerationError(QuizPipelineError):
    """Raised by the generation client; `retryable` marks rate-limit/quota failures"""

    def __init__(self, message: str, retryable: bool = False):
        self.message = message
        self.retryable = retryable
        super().__init__(message)


class ParseError(QuizPipelineError):
    """Raised when model output cannot be turned into typed data"""

    def __init__(self, message: str, stage: str = "decode"):
        self.message = message
        self.stage = stage  # extract | decode | validate
        super().__init__(f"[{stage}] {message}")


class AlreadySubmittedError(QuizPipelineError):
    def __init__(self, quiz_id: str):
        self.quiz_id = quiz_id
        super().__init__(f"Quiz {quiz_id} has already been submitted")


class OwnershipError(QuizPipelineError):
    def __init__(self, quiz_id: str, student_id):
        self.quiz_id = quiz_id
        self.student_id = student_id
        super().__init__(f"Quiz {quiz_id} does not belong to student {student_id}")


class QuizNotFoundError(QuizPipelineError):
    def __init__(self, quiz_id: str):
        self.quiz_id = quiz_id
        super().__init__(f"Quiz not found: {quiz_id}")
