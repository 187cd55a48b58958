"""
Screening Pipeline - Sequential, short-circuiting moderation.

This module runs a post through the ordered classifier list:
1. Concatenate title, summary and content into one text blob
2. Refuse to run without a credential (fail closed, nothing is called)
3. Query each classifier in order and apply its decision rule
4. Stop at the first classifier that flags the content

Any model call failure aborts the run with ModerationUnavailable. A run
either produces a verdict with its full audit report or no verdict at all.

States:
    START -> (QUERY -> EVALUATE -> CONTINUE | STOP)* -> APPROVED | REJECTED | FAILED
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Protocol, Sequence

from postguard.dispatcher.handlers import get_model_client
from postguard.exceptions import (
    ConfigurationError,
    ModelClientError,
    ModerationUnavailable,
)
from postguard.registry.classifiers import ClassifierDescriptor, get_classifier_registry
from postguard.schemas.moderation import ModerationRequest

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """Final outcome of a screening run that reached a decision."""

    APPROVED = "approved"
    REJECTED = "rejected"


class ClassificationClient(Protocol):
    """What the pipeline needs from a model client."""

    has_credential: bool

    async def classify(self, endpoint: str, text: str) -> Any: ...


@dataclass(frozen=True)
class ClassificationOutcome:
    """
    One classifier's contribution to a screening run.

    Attributes:
        model_name: Classifier name from the registry
        flagged: Whether this classifier flagged the content
        raw_result: Decoded response body, as returned by the endpoint
        error: Set when the call failed (the run is then aborted)
        diagnostic: Set when the raw result had an unexpected shape
        latency_ms: Time spent on the model call in milliseconds
    """

    model_name: str
    flagged: bool
    raw_result: Any = None
    error: str | None = None
    diagnostic: str | None = None
    latency_ms: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "model": self.model_name,
            "flagged": self.flagged,
            "result": self.raw_result,
            "error": self.error,
            "diagnostic": self.diagnostic,
            "latency_ms": round(self.latency_ms, 2),
        }


@dataclass
class ModerationReport:
    """Ordered outcomes, one per classifier actually invoked."""

    outcomes: list[ClassificationOutcome] = field(default_factory=list)

    def append(self, outcome: ClassificationOutcome) -> None:
        self.outcomes.append(outcome)

    def __iter__(self) -> Iterator[ClassificationOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    @property
    def model_names(self) -> list[str]:
        return [o.model_name for o in self.outcomes]

    def to_list(self) -> list[dict]:
        return [o.to_dict() for o in self.outcomes]


@dataclass
class ScreeningResult:
    """
    Result of a screening run that reached a verdict.

    Attributes:
        verdict: APPROVED or REJECTED
        report: Audit trail of invoked classifiers
        rejected_by: Name of the flagging classifier, None when approved
        latency_ms: Wall time of the whole run in milliseconds
    """

    verdict: Verdict
    report: ModerationReport
    rejected_by: str | None = None
    latency_ms: float = 0.0

    @property
    def approved(self) -> bool:
        return self.verdict == Verdict.APPROVED


def build_text(request: ModerationRequest) -> str:
    """Join the post fields with newlines, treating missing ones as empty."""
    return "\n".join(
        part or "" for part in (request.title, request.summary, request.content)
    )


class ScreeningPipeline:
    """
    Sequential moderation over a fixed, ordered classifier list.

    The pipeline holds no per-request state, so one instance can serve
    concurrent requests.

    Usage:
        pipeline = ScreeningPipeline(registry.list_classifiers(), client)
        result = await pipeline.screen(ModerationRequest(title="Hi", content="..."))
    """

    def __init__(
        self,
        classifiers: Sequence[ClassifierDescriptor],
        client: ClassificationClient,
    ) -> None:
        self._classifiers = tuple(classifiers)
        self._client = client

    @property
    def classifiers(self) -> tuple[ClassifierDescriptor, ...]:
        return self._classifiers

    async def screen(self, request: ModerationRequest) -> ScreeningResult:
        """
        Screen a post against every classifier until one flags it.

        Args:
            request: Post title, summary and content

        Returns:
            ScreeningResult with verdict and report.

        Raises:
            ConfigurationError: No credential is configured.
            ModerationUnavailable: A classifier call failed.
        """
        text = build_text(request)

        if not self._client.has_credential:
            logger.error("Moderation credential is not configured")
            raise ConfigurationError()

        report = ModerationReport()
        run_start = time.perf_counter()

        for classifier in self._classifiers:
            logger.info(f"Checking with {classifier.name}...")
            call_start = time.perf_counter()

            try:
                raw_result = await self._client.classify(classifier.endpoint, text)
            except ModelClientError as e:
                latency_ms = (time.perf_counter() - call_start) * 1000
                report.append(
                    ClassificationOutcome(
                        model_name=classifier.name,
                        flagged=False,
                        error=e.message,
                        latency_ms=latency_ms,
                    )
                )
                logger.error(f"Moderation failed at {classifier.name}: {e.message}")
                raise ModerationUnavailable(classifier.name, e, report) from e

            latency_ms = (time.perf_counter() - call_start) * 1000
            decision = classifier.decide(raw_result)
            report.append(
                ClassificationOutcome(
                    model_name=classifier.name,
                    flagged=decision.flagged,
                    raw_result=raw_result,
                    diagnostic=decision.diagnostic,
                    latency_ms=latency_ms,
                )
            )

            if decision.flagged:
                logger.info(f"Post rejected by {classifier.name}")
                return ScreeningResult(
                    verdict=Verdict.REJECTED,
                    report=report,
                    rejected_by=classifier.name,
                    latency_ms=(time.perf_counter() - run_start) * 1000,
                )

        logger.info(f"Post approved by all {len(report)} moderation models")
        return ScreeningResult(
            verdict=Verdict.APPROVED,
            report=report,
            latency_ms=(time.perf_counter() - run_start) * 1000,
        )


_pipeline_instance: ScreeningPipeline | None = None


def get_screening_pipeline() -> ScreeningPipeline:
    """
    Get the global screening pipeline instance.

    Wires the registry's classifier order to the shared model client.

    Returns:
        The singleton ScreeningPipeline instance
    """
    global _pipeline_instance
    if _pipeline_instance is None:
        _pipeline_instance = ScreeningPipeline(
            get_classifier_registry().list_classifiers(),
            get_model_client(),
        )
    return _pipeline_instance


def reset_screening_pipeline() -> None:
    """Drop the global pipeline so the next call rebuilds it (used by tests)."""
    global _pipeline_instance
    _pipeline_instance = None
