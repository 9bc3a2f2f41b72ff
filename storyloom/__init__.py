"""Staged prompt orchestration for drafting a personal essay."""

from .pipeline import Stage, StageContext, StageRequest, run_stage
from .settings import StoryloomSettings

__all__ = ["Stage", "StageContext", "StageRequest", "run_stage", "StoryloomSettings"]
