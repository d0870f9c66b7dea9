"""
Default wellness assessment and its scoring.

Answers are 1-based option indexes on a five-point scale; each answer scores
`index - 1`, so a question is worth 0-4 points.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence, Tuple

from fym.models import AssessmentQuestion

DEFAULT_ASSESSMENT_TYPE = "comprehensive"
DEFAULT_ASSESSMENT_TITLE = "Comprehensive Wellness Assessment"

MAX_POINTS_PER_QUESTION = 4
FOCUS_THRESHOLD = 2
ATTENTION_THRESHOLD = 3

_DEFAULT_QUESTIONS: List[Tuple[str, str, List[str], str]] = [
    ("stress-level", "How would you rate your current stress level?",
     ["Very Low", "Low", "Moderate", "High", "Very High"], "Stress Management"),
    ("sleep-quality", "How has your sleep been over the last week?",
     ["Poor", "Fair", "Good", "Very Good", "Excellent"], "Sleep & Rest"),
    ("work-life-balance", "How satisfied are you with the balance between work and the rest of your life?",
     ["Very Dissatisfied", "Dissatisfied", "Neutral", "Satisfied", "Very Satisfied"], "Work-Life Balance"),
    ("social-support", "How supported do you feel by the people around you?",
     ["Very Weak", "Weak", "Moderate", "Strong", "Very Strong"], "Social Support"),
    ("physical-activity", "How often are you physically active?",
     ["Never", "Rarely", "Sometimes", "Often", "Very Often"], "Physical Health"),
    ("emotional-regulation", "How well are you able to handle difficult emotions?",
     ["Poorly", "Below Average", "Average", "Above Average", "Excellent"], "Emotional Regulation"),
    ("mindfulness-practice", "How often do you take time for mindfulness or meditation?",
     ["Never", "Rarely", "Sometimes", "Often", "Daily"], "Mindfulness"),
    ("goal-clarity", "How clear are your personal and professional goals right now?",
     ["Not Clear", "Somewhat Clear", "Moderately Clear", "Very Clear", "Extremely Clear"], "Goal Setting"),
    ("energy-levels", "How are your energy levels through the day?",
     ["Very Low", "Low", "Moderate", "High", "Very High"], "Energy & Vitality"),
    ("overall-wellbeing", "Overall, how would you rate your wellbeing at the moment?",
     ["Poor", "Fair", "Good", "Very Good", "Excellent"], "Overall Wellbeing"),
]


def default_questions() -> List[AssessmentQuestion]:
    return [
        AssessmentQuestion(id=qid, question=text, type="scale", options=list(options), category=category)
        for qid, text, options, category in _DEFAULT_QUESTIONS
    ]


class InvalidAssessmentResponse(ValueError):
    pass


def validate_responses(questions: Sequence[AssessmentQuestion], responses: Mapping[str, Any]) -> None:
    """Reject unknown question ids and answers outside the option range."""
    by_id = {q.id: q for q in questions}
    for qid, answer in responses.items():
        question = by_id.get(qid)
        if question is None:
            raise InvalidAssessmentResponse(f"Unknown question: {qid}")
        if question.type != "scale":
            continue
        if isinstance(answer, bool) or not isinstance(answer, int):
            raise InvalidAssessmentResponse(f"Answer for {qid} must be an option number")
        upper = len(question.options) or MAX_POINTS_PER_QUESTION + 1
        if not 1 <= answer <= upper:
            raise InvalidAssessmentResponse(f"Answer for {qid} must be between 1 and {upper}")


def calculate_assessment_score(
    questions: Sequence[AssessmentQuestion], responses: Mapping[str, Any]
) -> Dict[str, Any]:
    total = 0
    category_scores: Dict[str, float] = {}

    for question in questions:
        answer = responses.get(question.id)
        if answer is None:
            continue
        if question.type == "scale":
            score = answer - 1 if isinstance(answer, int) else 0
        else:
            score = answer if isinstance(answer, int) else 0
        total += score
        category_scores[question.category] = category_scores.get(question.category, 0) + score

    recommendations: List[str] = []
    for category, score in category_scores.items():
        count = sum(1 for q in questions if q.category == category)
        average = score / count
        if average < FOCUS_THRESHOLD:
            recommendations.append(
                f"Consider focusing on {category.lower()} with additional resources and support."
            )
        elif average < ATTENTION_THRESHOLD:
            recommendations.append(
                f"Your {category.lower()} could benefit from some attention and self-care practices."
            )

    max_possible = len(questions) * MAX_POINTS_PER_QUESTION
    normalized = (total / max_possible) * 10 if max_possible > 0 else 0.0

    return {
        "total_score": round(normalized, 1),
        "category_scores": category_scores,
        "recommendations": recommendations,
    }
