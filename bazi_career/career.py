"""
Career recommendation record returned by the LLM collaborator.

The model is asked for a JSON object; this module gives that object a
fixed shape and rejects anything else with UpstreamFormatError.
Chart computation never depends on it.
"""

import json
import logging
import re
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bazi_career.bazi import ELEMENT_BY_NAME

logger = logging.getLogger(__name__)

MIN_OTHER_CAREERS = 4


class UpstreamFormatError(ValueError):
    """The LLM response is not a valid career recommendation."""


class OtherCareer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, description="备选职业")
    match_score: int = Field(..., alias="matchScore", ge=0, le=100)
    reason: str = Field(..., min_length=1)


class TopCareer(OtherCareer):
    keywords: List[str] = Field(..., min_length=1)


class CareerRecommendation(BaseModel):
    """天选职业 + 备选职业 + 格局/性格解析"""
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    favorable_elements: List[str] = Field(..., alias="favorableElements", min_length=1)
    unfavorable_elements: List[str] = Field(..., alias="unfavorableElements", min_length=1)
    pattern: str
    personality: str
    top_career: TopCareer = Field(..., alias="topCareer")
    other_careers: List[OtherCareer] = Field(..., alias="otherCareers", min_length=MIN_OTHER_CAREERS)

    @field_validator("favorable_elements", "unfavorable_elements")
    @classmethod
    def known_elements(cls, v: List[str]) -> List[str]:
        unknown = [name for name in v if name.strip().lower() not in ELEMENT_BY_NAME]
        if unknown:
            raise ValueError(f"unknown element names: {unknown}")
        return v


def _extract_json(content: str):
    text = content.strip()

    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:]
        lines = lines[:-1] if lines and lines[-1].strip() == "```" else lines
        text = "\n".join(lines)

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        return json.loads(match.group())
    raise json.JSONDecodeError("No JSON object found", text, 0)


def parse_recommendation(content: str) -> CareerRecommendation:
    """
    Parse and validate raw LLM output.

    Accepts bare JSON, fenced ```json blocks, or JSON embedded in prose.

    Raises:
        UpstreamFormatError: content is empty, not JSON, or the wrong shape
    """
    if not content or not content.strip():
        logger.warning("[CAREER] Empty upstream response")
        raise UpstreamFormatError("Empty response from recommendation service")

    try:
        data = _extract_json(content)
    except json.JSONDecodeError as exc:
        logger.warning("[CAREER] Unparseable upstream response: %s", content[:200])
        raise UpstreamFormatError(f"Response is not valid JSON: {exc.msg}") from exc

    try:
        return CareerRecommendation.model_validate(data)
    except ValidationError as exc:
        logger.warning("[CAREER] Response failed validation: %d error(s)", exc.error_count())
        raise UpstreamFormatError(f"Response does not match the recommendation shape: {exc}") from exc
