QUIZ_PROMPT = """Create a multiple-choice quiz based EXCLUSIVELY on the course content below.

COURSE TITLE: {course_title}
DIFFICULTY LEVEL: {difficulty}
NUMBER OF QUESTIONS: {question_count}

COURSE CONTENT:
---
{context}
---

REQUIREMENTS:
1. Generate exactly {question_count} questions
2. Each question must have exactly 4 answer options
3. Exactly ONE option must be correct; correct_option_index is its 0-based position
4. Questions must be derived ONLY from the content above
5. Match the difficulty level: EASY = recall, MEDIUM = understanding, HARD = application, EXPERT = analysis
6. Vary question styles (conceptual, practical, analytical)
7. Do not use "All of the above" or "None of the above"

MATHEMATICAL CONTENT:
- Write formulas in LaTeX, inline as $E = mc^2$ and display as $$\\frac{{a}}{{b}}$$
- Escape every backslash inside JSON strings

Respond ONLY with valid JSON:
{{
  "questions": [
    {{
      "question_text": "<question stem>",
      "options": [
        {{"text": "<option A>", "explanation": "<why correct/incorrect>"}},
        {{"text": "<option B>", "explanation": "<why correct/incorrect>"}},
        {{"text": "<option C>", "explanation": "<why correct/incorrect>"}},
        {{"text": "<option D>", "explanation": "<why correct/incorrect>"}}
      ],
      "correct_option_index": 0,
      "explanation": "<overall explanation>",
      "source_context": "<short excerpt of the content the question is based on>"
    }}
  ]
}}
"""

EVALUATION_PROMPT = """Evaluate a student's quiz result and write short, encouraging feedback.

QUIZ RESULT:
- Current difficulty: {difficulty}
- Score: {score:.1f}%
- Correct: {correct}/{total}
- Weak topics: {weak_topics}

DIFFICULTY LEVELS, in order: EASY -> MEDIUM -> HARD -> EXPERT
- Score >= 90%: recommend the next higher level
- Score 50-90%: recommend the same level
- Score < 50%: recommend the next lower level

Respond ONLY with valid JSON:
{{
  "feedback": "<2-3 sentences addressed to the student>",
  "strengths": ["<strength>"],
  "weaknesses": ["<weakness>"],
  "recommendations": ["<what to study next>"],
  "recommended_difficulty": "EASY|MEDIUM|HARD|EXPERT",
  "course_validated": true
}}
"""

FLASHCARD_PROMPT = """Generate {count} study flashcards from the course content below.

COURSE CONTENT:
---
{context}
---

Respond ONLY with valid JSON:
[
  {{"front": "<question or concept>", "back": "<answer or explanation>"}}
]
"""


def build_quiz_prompt(course_title: str, difficulty: str, question_count: int, context: str) -> str:
    return QUIZ_PROMPT.format(
        course_title=course_title,
        difficulty=difficulty,
        question_count=question_count,
        context=context,
    )


def build_evaluation_prompt(
    difficulty: str, score: float, correct: int, total: int, weak_topics: list[str]
) -> str:
    topics = "; ".join(t for t in weak_topics if t) or "none"
    return EVALUATION_PROMPT.format(
        difficulty=difficulty,
        score=score,
        correct=correct,
        total=total,
        weak_topics=topics,
    )


def build_flashcard_prompt(count: int, context: str) -> str:
    return FLASHCARD_PROMPT.format(count=count, context=context)
