"""
Decision Rules

Pure functions that turn a classifier's raw output into a flagged/not-flagged
verdict. Raw output comes from a remote service with no schema contract, so
every entry a rule reads is validated first; anything unusable (wrong type,
missing label, non-finite score) raises DecisionShapeMismatch.

Accepted shapes:
    [{"label": "toxic", "score": 0.91}, ...]          flat
    [[{"label": "hate", "score": 0.88}, ...]]         batched (one input)
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from postguard.exceptions import DecisionShapeMismatch


@dataclass(frozen=True)
class LabelScore:
    """One (label, score) pair from a classifier."""

    label: str
    score: float


@dataclass(frozen=True)
class Decision:
    """
    Result of applying a decision rule.

    Attributes:
        flagged: Whether the content violates the classifier's policy
        diagnostic: Set when the raw result could not be interpreted
    """

    flagged: bool
    diagnostic: str | None = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _entries(raw: Any) -> list:
    """Unwrap the batched form and check the payload is a non-empty list."""
    if not isinstance(raw, list) or not raw:
        raise DecisionShapeMismatch(
            f"expected a non-empty list, got {type(raw).__name__}"
        )

    entries = raw[0] if isinstance(raw[0], list) else raw
    if not entries:
        raise DecisionShapeMismatch("expected at least one label/score pair")
    return entries


def _label_score(entry: Any, index: int) -> LabelScore:
    """Validate one {label, score} entry; scores must be finite floats."""
    if not isinstance(entry, Mapping):
        raise DecisionShapeMismatch(
            f"entry {index} is {type(entry).__name__}, not an object"
        )
    label = entry.get("label")
    score = entry.get("score")
    if not isinstance(label, str) or not _is_number(score):
        raise DecisionShapeMismatch(
            f"entry {index} lacks a string label and numeric score"
        )
    try:
        value = float(score)
    except OverflowError:
        raise DecisionShapeMismatch(f"entry {index} score is out of range") from None
    if not math.isfinite(value):
        raise DecisionShapeMismatch(f"entry {index} score is not finite")
    return LabelScore(label=label, score=value)


def extract_label_scores(raw: Any) -> list[LabelScore]:
    """
    Normalize a raw classifier result into label/score pairs.

    Args:
        raw: Decoded JSON body from the inference API.

    Returns:
        Non-empty list of LabelScore in response order.

    Raises:
        DecisionShapeMismatch: If the payload is not a (possibly batched)
            non-empty list of {label: str, score: finite number} mappings.
    """
    return [_label_score(entry, index) for index, entry in enumerate(_entries(raw))]


def top_label(raw: Any, target_label: str, threshold: float) -> bool:
    """
    Flag when the highest-scoring label is the target label.

    Ties on the maximum score go to the pair that appears first. The score
    must be strictly greater than the threshold.
    """
    pairs = extract_label_scores(raw)

    top = pairs[0]
    for pair in pairs[1:]:
        if pair.score > top.score:
            top = pair

    return top.label.lower() == target_label.lower() and top.score > threshold


def label_lookup(raw: Any, target_label: str, threshold: float) -> bool:
    """
    Flag when the first pair carrying the target label scores above threshold.

    Only the matching entry is validated; unrelated entries may be malformed.
    """
    wanted = target_label.lower()
    for index, entry in enumerate(_entries(raw)):
        label = entry.get("label") if isinstance(entry, Mapping) else None
        if isinstance(label, str) and label.lower() == wanted:
            return _label_score(entry, index).score > threshold
    return False
