"""
Pipeline module: Sequential screening and its audit report.

Key exports:
- ScreeningPipeline: Runs a post through the ordered classifiers
- ScreeningResult / Verdict: Outcome of a run that reached a decision
- ClassificationOutcome / ModerationReport: Per-model audit trail
- build_text(): Concatenate post fields into the submitted text
- get_screening_pipeline(): Global pipeline wired to settings
"""

from postguard.pipeline.screening import (
    ClassificationOutcome,
    ModerationReport,
    ScreeningPipeline,
    ScreeningResult,
    Verdict,
    build_text,
    get_screening_pipeline,
    reset_screening_pipeline,
)

__all__ = [
    "ClassificationOutcome",
    "ModerationReport",
    "ScreeningPipeline",
    "ScreeningResult",
    "Verdict",
    "build_text",
    "get_screening_pipeline",
    "reset_screening_pipeline",
]
