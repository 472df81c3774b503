# sentiflow/core/themes.py
import logging
import re

from sentiflow.core.catalog import THEME_OTHER, THEMES
from sentiflow.core.prompts import THEME_SYSTEM_PROMPT, build_theme_prompt
from sentiflow.exceptions import RemoteCallError
from sentiflow.metrics import ANALYSIS_FAILURES_TOTAL

logger = logging.getLogger(__name__)

_EXACT_THEME = re.compile("|".join(re.escape(theme) for theme in THEMES))

# Checked in order when the reply names no category exactly
PARTIAL_THEME_RULES = (
    (("api", "performance", "timeout", "error"), "API Performance Issues"),
    (("billing", "invoice", "payment"), "Billing UI Confusion"),
    (("documentation", "docs", "document"), "Documentation Gaps"),
    (("feature", "request", "add"), "Feature Requests"),
    (("mobile", "phone", "responsive"), "Mobile App Bugs"),
    (("dark", "theme"), "Dark Mode Requests"),
    (("typescript", "types"), "TypeScript SDK Feature Request"),
    (("support", "help"), "Customer Support Praise"),
    (("ai", "workers ai"), "Workers AI Praise"),
    (("praise", "great", "amazing", "love"), "Product Praise"),
)


def match_theme(reply: str) -> str:
    """Map a free-text model reply onto the theme catalog."""
    exact = _EXACT_THEME.search(reply)
    if exact:
        return exact.group(0)

    lowered = reply.lower().strip()
    for phrases, theme in PARTIAL_THEME_RULES:
        if any(phrase in lowered for phrase in phrases):
            return theme
    return THEME_OTHER


async def classify_theme(classifier, content: str) -> str:
    """Single-call theme classification; any remote failure yields 'Other'."""
    try:
        reply = await classifier.chat_complete(THEME_SYSTEM_PROMPT, build_theme_prompt(content))
    except RemoteCallError as e:
        ANALYSIS_FAILURES_TOTAL.labels(stage="theme").inc()
        logger.error(f"Error classifying theme: {e}")
        return THEME_OTHER
    return match_theme(reply)
