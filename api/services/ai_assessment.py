"""
Normalization of AI assessment payloads.

The scoring service is external and its output is stored as-is, after light
coercion: the qualification score is clamped, skill lists become lists of
strings, and anything missing is stored as null or an empty list.
"""

import math
from typing import Any, Dict, List, Optional

AI_SCORE_MIN = 0.0
AI_SCORE_MAX = 100.0

AI_LIST_FIELDS = ("ai_matched_skills", "ai_missing_skills", "ai_strengths")
AI_TEXT_FIELDS = ("ai_assessment_summary", "ai_cover_letter")


def _coerce_score(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score):
        return None
    return min(max(score, AI_SCORE_MIN), AI_SCORE_MAX)


def _coerce_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return []


def normalize_ai_assessment(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Map an assessment payload onto the application's AI columns.

    Args:
        payload: Raw output of the scoring service, possibly partial

    Returns:
        A dict with every AI column set
    """
    payload = payload or {}

    normalized: Dict[str, Any] = {
        "ai_qualification_score": _coerce_score(payload.get("ai_qualification_score")),
    }
    for field in AI_LIST_FIELDS:
        normalized[field] = _coerce_str_list(payload.get(field))
    for field in AI_TEXT_FIELDS:
        value = payload.get(field)
        normalized[field] = str(value) if value is not None else None

    parsed = payload.get("resume_parsed_data")
    normalized["resume_parsed_data"] = parsed if isinstance(parsed, dict) else None

    return normalized


def has_ai_assessment(payload: Optional[Dict[str, Any]]) -> bool:
    """Whether a request carried any AI field at all."""
    if not payload:
        return False
    fields = ("ai_qualification_score", "resume_parsed_data") + AI_LIST_FIELDS + AI_TEXT_FIELDS
    return any(payload.get(field) is not None for field in fields)
