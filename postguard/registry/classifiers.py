"""
Classifier Registry

This module defines the ordered pool of hosted text classifiers a post is
screened against:
- hate-speech (RoBERTa Dynabench R4): top label must be "hate" above 0.6
- toxicity (toxic-bert): "toxic" label must score above 0.7

Order is policy, not preference. Classifiers are queried one after another
and the first one that flags the content ends the run, so later (often more
expensive or slower) models are never called for content already rejected.
The list is built once at process start and exposed as a tuple.
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from postguard.config import get_settings
from postguard.exceptions import DecisionShapeMismatch
from postguard.registry.rules import Decision, label_lookup, top_label

logger = logging.getLogger(__name__)


class DecisionRule(str, Enum):
    """How a classifier's label/score output is turned into a verdict."""

    TOP_LABEL = "top_label"  # Highest-scoring label must be the target
    LABEL_LOOKUP = "label_lookup"  # Target label's own score is compared


_RULES = {
    DecisionRule.TOP_LABEL: top_label,
    DecisionRule.LABEL_LOOKUP: label_lookup,
}


class ClassifierDescriptor(BaseModel):
    """
    Immutable configuration for one classifier in the screening order.

    Binds a remote model endpoint to the rule that interprets its output.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    name: str = Field(
        ...,
        min_length=1,
        description="Unique identifier, used in reports and rejection messages",
    )

    display_name: str = Field(
        ...,
        description="Human-readable classifier name",
    )

    model_id: str = Field(
        ...,
        description="Hosted model repository id (the classifier version)",
    )

    endpoint: str = Field(
        ...,
        description="URL the classification request is POSTed to",
    )

    rule: DecisionRule = Field(
        ...,
        description="Decision rule applied to the raw output",
    )

    target_label: str = Field(
        ...,
        description="Label that indicates a policy violation (case-insensitive)",
    )

    threshold: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Score the target label must strictly exceed",
    )

    def decide(self, raw_result: Any) -> Decision:
        """
        Apply this classifier's rule to a raw result.

        Unexpected shapes never raise: the decision degrades to not flagged
        and carries a diagnostic so the report shows what happened.

        Args:
            raw_result: Decoded JSON returned by the model endpoint.

        Returns:
            Decision with the flagged verdict and optional diagnostic.
        """
        try:
            flagged = _RULES[self.rule](raw_result, self.target_label, self.threshold)
        except DecisionShapeMismatch as e:
            logger.warning(
                f"Unexpected format from {self.name} model ({e.message}): {raw_result!r}"
            )
            return Decision(flagged=False, diagnostic=e.message)
        return Decision(flagged=flagged)


class ClassifierRegistry:
    """
    Ordered, read-only registry of classifiers.

    Attributes:
        _classifiers: Descriptors in screening order
    """

    def __init__(self, base_url: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._classifiers: tuple[ClassifierDescriptor, ...] = ()
        self._initialize_classifiers()

    def _endpoint(self, model_id: str) -> str:
        return f"{self._base_url}/{model_id}"

    def _initialize_classifiers(self) -> None:
        """Register the classifiers in screening order."""
        classifiers = (
            ClassifierDescriptor(
                name="hate-speech",
                display_name="RoBERTa Hate Speech (Dynabench R4)",
                model_id="facebook/roberta-hate-speech-dynabench-r4-target",
                endpoint=self._endpoint(
                    "facebook/roberta-hate-speech-dynabench-r4-target"
                ),
                rule=DecisionRule.TOP_LABEL,
                target_label="hate",
                threshold=0.6,
            ),
            ClassifierDescriptor(
                name="toxicity",
                display_name="Toxic BERT",
                model_id="unitary/toxic-bert",
                endpoint=self._endpoint("unitary/toxic-bert"),
                rule=DecisionRule.LABEL_LOOKUP,
                target_label="toxic",
                threshold=0.7,
            ),
        )

        names = [c.name for c in classifiers]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate classifier names: {sorted(duplicates)}")

        self._classifiers = classifiers

    def get_classifier(self, name: str) -> ClassifierDescriptor | None:
        """
        Retrieve a classifier by name.

        Args:
            name: The classifier's unique name

        Returns:
            ClassifierDescriptor if found, None otherwise
        """
        for classifier in self._classifiers:
            if classifier.name == name:
                return classifier
        return None

    def list_classifiers(self) -> tuple[ClassifierDescriptor, ...]:
        """Return all classifiers in screening order."""
        return self._classifiers

    def get_classifier_names(self) -> list[str]:
        """Return classifier names in screening order."""
        return [c.name for c in self._classifiers]


_registry_instance: ClassifierRegistry | None = None


def get_classifier_registry() -> ClassifierRegistry:
    """
    Get the global classifier registry instance.

    Built lazily from the configured inference base URL.

    Returns:
        The singleton ClassifierRegistry instance
    """
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = ClassifierRegistry(get_settings().inference_base_url)
    return _registry_instance
