"""
Test Fixtures

Shared test data for the PostGuard test suite: sample posts and canned
classifier outputs in the shapes the inference API returns.
"""

HATE_SPEECH_ENDPOINT_SUFFIX = "facebook/roberta-hate-speech-dynabench-r4-target"
TOXICITY_ENDPOINT_SUFFIX = "unitary/toxic-bert"


def hf_scores(*pairs: tuple[str, float], batched: bool = True) -> list:
    """
    Build a text-classification payload.

    Usage:
        hf_scores(("hate", 0.9), ("nothate", 0.1))
        -> [[{"label": "hate", "score": 0.9}, {"label": "nothate", "score": 0.1}]]
    """
    entries = [{"label": label, "score": score} for label, score in pairs]
    return [entries] if batched else entries


# Classifier outputs
HATE_DOMINANT = hf_scores(("hate", 0.9), ("nothate", 0.1))
NOT_HATE = hf_scores(("nothate", 0.97), ("hate", 0.03))
TOXIC_HIGH = hf_scores(("toxic", 0.92), ("insult", 0.41), ("obscene", 0.12))
TOXIC_LOW = hf_scores(("toxic", 0.02), ("insult", 0.01), ("obscene", 0.01))

# Sample posts
CLEAN_POST = {
    "title": "Weekend hike",
    "summary": "Trip report from the ridge trail",
    "content": "We started at dawn and reached the summit by noon.",
}

HATEFUL_POST = {
    "title": "x",
    "summary": "y",
    "content": "I hate them",
}

TOXIC_POST = {
    "title": "Review",
    "summary": "My thoughts",
    "content": "This author is a complete idiot.",
}
