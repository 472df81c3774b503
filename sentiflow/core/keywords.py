# sentiflow/core/keywords.py
"""
Keyword signals over feedback text.

Every table holds lowercase literal phrases matched by plain substring
containment against the lowercased content. Word-boundary matching would
change results (e.g. "cant" inside "significant", "add" inside "address"),
so keep it literal.
"""

# Broad list used when deciding whether feedback is a neutral request
ERROR_KEYWORDS = (
    "error", "errors", "broken", "down", "crash", "failed", "failure",
    "bug", "bugs", "issue", "issues", "problem", "problems",
    "not working", "doesn't work", "can't", "cant", "cannot",
    "403", "404", "500", "502", "503", "504",
)

# Narrow list used by the final decision; bare issue/problem are handled separately
NARROW_ERROR_KEYWORDS = (
    "error", "errors", "broken", "down", "crash", "failed", "failure",
    "bug", "bugs",
    "not working", "doesn't work", "can't", "cant", "cannot",
    "403", "404", "500", "502", "503", "504",
)

# Leading space keeps "tissue" or "reissue" from counting
ISSUE_MENTIONS = (" issue", " issues", " problem", " problems")

URGENT_KEYWORDS = (
    "urgent", "asap", "immediate", "critical", "emergency", "blocking",
    "broken", "not working",
)

REQUEST_KEYWORDS = (
    "request", "add", "feature", "support", "need", "would be nice",
    "can you", "please add", "suggestion", "improvement", "would love",
    "could you",
)

STRONG_EMOTION_KEYWORDS = (
    "love", "amazing", "incredible", "fantastic",
    "hate", "terrible", "awful", "horrible", "disgusting",
)

POSITIVE_CONTEXT_KEYWORDS = (
    "resolved", "fixed", "solved", "helped", "great", "excellent", "amazing",
    "phenomenal", "wonderful", "fantastic", "perfect", "love", "thanks",
    "thank you", "appreciate", "helpful", "quick", "fast", "easy",
)


def contains_any(content: str, phrases) -> bool:
    lowered = content.lower()
    return any(phrase in lowered for phrase in phrases)


def has_error_signal(content: str) -> bool:
    return contains_any(content, ERROR_KEYWORDS)


def has_urgent_signal(content: str) -> bool:
    return contains_any(content, URGENT_KEYWORDS)


def has_request_signal(content: str) -> bool:
    return contains_any(content, REQUEST_KEYWORDS)


def has_strong_emotion_signal(content: str) -> bool:
    return contains_any(content, STRONG_EMOTION_KEYWORDS)


def has_positive_context_signal(content: str) -> bool:
    return contains_any(content, POSITIVE_CONTEXT_KEYWORDS)


def has_error_keywords_narrow(content: str) -> bool:
    """Narrow error check: issue/problem mentions only count without positive context."""
    if contains_any(content, NARROW_ERROR_KEYWORDS):
        return True
    return not has_positive_context_signal(content) and contains_any(content, ISSUE_MENTIONS)
