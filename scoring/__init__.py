"""Deterministic scoring engine: pure functions from daily records to scores and hints."""

from scoring.gut_score import GutScoreResult, compute_gut_score, compute_overall_score
from scoring.hints import ReboundAlert, StageHints, compute_rebound_alert, compute_stage_hints

__all__ = [
    "GutScoreResult",
    "ReboundAlert",
    "StageHints",
    "compute_gut_score",
    "compute_overall_score",
    "compute_rebound_alert",
    "compute_stage_hints",
]
