import logging

from ai_generator import AIGenerator
from difficulty import next_difficulty
from errors import AlreadySubmittedError, GenerationError, OwnershipError, ParseError
from fallback import fallback_evaluation
from models import Evaluation, Quiz, QuizResult, QuizSubmission, StudentAnswer
from prompts import build_evaluation_prompt
from response_parser import parse_evaluation
from retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

PASSING_THRESHOLD = 70.0


class Evaluator:
    """Scores submissions and attaches feedback from the model or the rule-based fallback"""

    def __init__(
        self,
        generator: AIGenerator | None,
        retry_policy: RetryPolicy,
        passing_threshold: float = PASSING_THRESHOLD,
    ):
        self.generator = generator
        self.retry_policy = retry_policy
        self.passing_threshold = passing_threshold

    def evaluate(self, quiz: Quiz, submission: QuizSubmission) -> QuizResult:
        """
        Score a submission against its quiz.

        Missing answers count as incorrect. The source excerpts of incorrect
        questions become the weak topics sent to the model. The returned
        result is not attached to the quiz; persisting it is the caller's job.

        Raises:
            OwnershipError: submission comes from a different student
            AlreadySubmittedError: quiz already carries a result
        """
        if submission.quiz_id != quiz.id or submission.student_id != quiz.student_id:
            raise OwnershipError(quiz.id, submission.student_id)
        if quiz.is_submitted:
            raise AlreadySubmittedError(quiz.id)

        answers = []
        weak_topics = []
        for question in quiz.questions:
            selected = submission.answers.get(question.id)
            answer = StudentAnswer(
                question_id=question.id,
                selected_index=selected,
                correct_index=question.correct_option_index,
            )
            if not answer.is_correct:
                weak_topics.append(question.source_excerpt)
            answers.append(answer)

        total = len(quiz.questions)
        correct = sum(1 for a in answers if a.is_correct)
        score = 100.0 * correct / total if total else 0.0
        logger.info("Score for quiz %s: %d/%d (%.1f%%)", quiz.id, correct, total, score)

        evaluation = self._evaluate(quiz, score, correct, total, weak_topics)

        return QuizResult(
            quiz_id=quiz.id,
            student_id=quiz.student_id,
            course_id=quiz.course_id,
            total_questions=total,
            correct_count=correct,
            passing_threshold=self.passing_threshold,
            feedback_text=evaluation.feedback,
            strengths=evaluation.strengths,
            weaknesses=evaluation.weaknesses,
            recommendations=evaluation.recommendations,
            course_validated=evaluation.course_validated,
            recommended_next_difficulty=evaluation.recommended_difficulty,
            answers=answers,
            feedback_source=evaluation.source,
            time_taken_seconds=submission.time_taken_seconds,
        )

    def _evaluate(
        self, quiz: Quiz, score: float, correct: int, total: int, weak_topics: list[str]
    ) -> Evaluation:
        rules = fallback_evaluation(quiz.difficulty, score, self.passing_threshold)

        if self.generator is None or not self.generator.is_available:
            return rules

        prompt = build_evaluation_prompt(quiz.difficulty.value, score, correct, total, weak_topics)
        try:
            raw = self.retry_policy.call(self.generator.generate, prompt)
            external = parse_evaluation(raw)
        except (GenerationError, ParseError) as e:
            logger.warning("Evaluation generation failed, using rule-based feedback: %s", e)
            return rules

        # Model output supplies the wording only; progression and validation stay rule-based
        return Evaluation(
            feedback=external.feedback,
            strengths=external.strengths or rules.strengths,
            weaknesses=external.weaknesses or rules.weaknesses,
            recommendations=external.recommendations or rules.recommendations,
            course_validated=rules.course_validated,
            recommended_difficulty=next_difficulty(quiz.difficulty, score),
            source="model",
        )
