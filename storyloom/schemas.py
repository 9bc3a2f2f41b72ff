from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================
# HTTP request body
# ============================================================

class EssayRequest(BaseModel):
    """
    POST /essay body. Loose on purpose: answers may be strings or q/a
    objects and maxWords may arrive as a string; both are resolved by
    the answer normalizer, not here.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    stage: Optional[Any] = Field(default=None, description="start | followup | draft (essay)")
    answers: Optional[List[Any]] = Field(default=None, description="Strings or {q, a} objects")
    tone: Optional[str] = Field(default=None, description="Style register for the draft")
    max_words: Optional[Any] = Field(default=None, alias="maxWords", description="Word ceiling, clamped")


# ============================================================
# Stage results
# ============================================================

@dataclass
class QuestionsResult:
    questions: List[str] = field(default_factory=list)
    question: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "ok": True,
            "stage": "questions",
            "questions": list(self.questions),
        }
        if self.question is not None:
            payload["question"] = self.question
        return payload


@dataclass
class FollowupResult:
    question: str

    def to_json(self) -> Dict[str, Any]:
        return {"ok": True, "question": self.question}


@dataclass
class DraftResult:
    essay: str

    def to_json(self) -> Dict[str, Any]:
        return {"ok": True, "stage": "done", "essay": self.essay}


__all__ = ["EssayRequest", "QuestionsResult", "FollowupResult", "DraftResult"]
