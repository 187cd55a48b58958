"""
Registry module: Ordered classifier configuration and decision rules.

This module contains:
- classifiers.py: ordered classifier descriptors and their registry
- rules.py: pure decision rules over label/score payloads

Public API:
- ClassifierDescriptor: Immutable classifier configuration
- ClassifierRegistry: Ordered, read-only registry
- DecisionRule: Enum of supported rules
- Decision: Rule outcome (flagged + diagnostic)
- get_classifier_registry: Singleton accessor function
"""

from postguard.registry.classifiers import (
    ClassifierDescriptor,
    ClassifierRegistry,
    DecisionRule,
    get_classifier_registry,
)
from postguard.registry.rules import (
    Decision,
    LabelScore,
    extract_label_scores,
    label_lookup,
    top_label,
)

__all__ = [
    "ClassifierDescriptor",
    "ClassifierRegistry",
    "DecisionRule",
    "get_classifier_registry",
    "Decision",
    "LabelScore",
    "extract_label_scores",
    "label_lookup",
    "top_label",
]
