from typing import Any, Dict, Sequence

from fym.models import MoodEntry

TREND_MARGIN = 0.5


def mood_stats(entries: Sequence[MoodEntry]) -> Dict[str, Any]:
    """Summary of a mood window. `entries` are newest first."""
    if not entries:
        return {
            "average": None,
            "trend": "neutral",
            "best_mood": None,
            "worst_mood": None,
            "total_entries": 0,
            "days_tracked": 0,
        }

    scores = [e.mood_score for e in entries]
    chronological = list(reversed(scores))
    half = len(chronological) // 2
    trend = "neutral"
    if half:
        older = sum(chronological[:half]) / half
        newer = sum(chronological[half:]) / (len(chronological) - half)
        if newer - older > TREND_MARGIN:
            trend = "improving"
        elif older - newer > TREND_MARGIN:
            trend = "declining"

    return {
        "average": round(sum(scores) / len(scores), 1),
        "trend": trend,
        "best_mood": max(scores),
        "worst_mood": min(scores),
        "total_entries": len(scores),
        "days_tracked": len({e.created_at.date() for e in entries}),
    }
