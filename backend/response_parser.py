"""
Sanitizing and decoding structured model output.

Repair and decoding are separate passes:

1. strip_code_fences  - drop ```json fences around the payload
2. extract_payload    - keep the outermost {...} (or [...]) span
3. repair_escapes     - double any backslash that does not start a valid
                        JSON escape, e.g. LaTeX's \\alpha or \\frac
4. json.loads + typed validation

Every failure raises ParseError with the stage it happened in, so callers can
tell an unusable payload apart from one that only failed to decode.
"""

import json
import logging
import re

from pydantic import ValidationError

from errors import ParseError
from models import AnswerOption, DifficultyLevel, Evaluation, Flashcard, GeneratedQuestion

logger = logging.getLogger(__name__)

# Characters allowed after a backslash in JSON strings
VALID_JSON_ESCAPES = frozenset('"\\/bfnrtu')

_FENCE = re.compile(r"```[a-zA-Z]*[ \t]*\n?")
_UNICODE_ESCAPE = re.compile(r"[0-9a-fA-F]{4}")


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text)


def extract_payload(text: str, opener: str = "{", closer: str = "}") -> str:
    """Return the outermost opener...closer span of `text`."""
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end <= start:
        raise ParseError(f"No JSON payload found in response: {text[:200]!r}", stage="extract")
    return text[start : end + 1]


def repair_escapes(payload: str) -> str:
    """
    Escape backslashes that do not begin a valid JSON escape sequence.

    `\\alpha` is kept as the two characters backslash + 'alpha' in the decoded
    string instead of breaking the decoder. Valid escapes pass through untouched.
    """
    repaired = []
    i = 0
    length = len(payload)
    while i < length:
        char = payload[i]
        if char == "\\" and i + 1 < length:
            following = payload[i + 1]
            if following == "u" and not _UNICODE_ESCAPE.match(payload, i + 2):
                # \underline, \upsilon: not a \uXXXX escape
                repaired.append("\\\\" + following)
            elif following in VALID_JSON_ESCAPES:
                repaired.append(char + following)
            else:
                repaired.append("\\\\" + following)
            i += 2
        elif char == "\\":
            # Dangling backslash at the very end
            repaired.append("\\\\")
            i += 1
        else:
            repaired.append(char)
            i += 1
    return "".join(repaired)


def sanitize(raw_text: str, opener: str = "{", closer: str = "}") -> str:
    """Fence stripping, payload extraction and escape repair, without decoding."""
    if not raw_text or not raw_text.strip():
        raise ParseError("Empty response", stage="extract")
    payload = extract_payload(strip_code_fences(raw_text), opener, closer)
    return repair_escapes(payload)


def decode(raw_text: str, opener: str = "{", closer: str = "}"):
    payload = sanitize(raw_text, opener, closer)
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e}", stage="decode") from e


def _build_question(data: dict) -> GeneratedQuestion:
    options = []
    for option in data.get("options") or []:
        if isinstance(option, dict):
            options.append(
                AnswerOption(
                    text=str(option.get("text", "")).strip(),
                    rationale=str(option.get("explanation") or option.get("rationale") or ""),
                )
            )
        else:
            options.append(AnswerOption(text=str(option).strip()))

    return GeneratedQuestion(
        text=str(data.get("question_text") or data.get("text") or "").strip(),
        options=options,
        correct_option_index=int(data.get("correct_option_index", 0)),
        rationale=str(data.get("explanation") or data.get("rationale") or ""),
        source_excerpt=str(data.get("source_context") or data.get("source_excerpt") or ""),
    )


def parse_quiz(raw_text: str) -> list[GeneratedQuestion]:
    """
    Decode a quiz payload into validated questions.

    Questions that are malformed (wrong option count, index out of range,
    empty text) are dropped; a payload with no usable question is a failure.

    Raises:
        ParseError: on extraction, decode or validation failure
    """
    data = decode(raw_text)
    if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
        raise ParseError("Payload has no 'questions' list", stage="validate")

    questions = []
    for position, item in enumerate(data["questions"]):
        if not isinstance(item, dict):
            logger.warning("Skipping question %d: not an object", position)
            continue
        try:
            question = _build_question(item)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning("Skipping malformed question %d: %s", position, e)
            continue
        if not question.text:
            logger.warning("Skipping question %d: empty text", position)
            continue
        questions.append(question)

    if not questions:
        raise ParseError("Response contained no usable questions", stage="validate")

    logger.info("Parsed %d questions from model response", len(questions))
    return questions


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def parse_evaluation(raw_text: str) -> Evaluation:
    """
    Decode an evaluation payload.

    Only `feedback` is required. The recommended difficulty is parsed
    tolerantly and may come back as None.
    """
    data = decode(raw_text)
    if not isinstance(data, dict):
        raise ParseError("Evaluation payload is not an object", stage="validate")

    feedback = str(data.get("feedback") or "").strip()
    if not feedback:
        raise ParseError("Evaluation payload has no feedback", stage="validate")

    return Evaluation(
        feedback=feedback,
        strengths=_string_list(data.get("strengths")),
        weaknesses=_string_list(data.get("weaknesses")),
        recommendations=_string_list(data.get("recommendations")),
        course_validated=bool(data.get("course_validated", False)),
        recommended_difficulty=DifficultyLevel.parse(data.get("recommended_difficulty")),
        source="model",
    )


def parse_flashcards(raw_text: str) -> list[Flashcard]:
    data = decode(raw_text, opener="[", closer="]")
    if not isinstance(data, list):
        raise ParseError("Flashcard payload is not a list", stage="validate")

    cards = []
    for item in data:
        if not isinstance(item, dict):
            continue
        front = str(item.get("front") or "").strip()
        back = str(item.get("back") or "").strip()
        if front and back:
            cards.append(Flashcard(front=front, back=back))

    if not cards:
        raise ParseError("Response contained no usable flashcards", stage="validate")
    return cards
