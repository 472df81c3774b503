# sentiflow/core/prompts.py
from sentiflow.core.catalog import EMOTIONS, THEMES

_THEME_LINES = "\n".join(f"- {theme}" for theme in THEMES)

EMOTION_THEME_SYSTEM_PROMPT = (
    "You are an emotion and theme detection expert. "
    "Respond with emotion and theme in the exact format requested."
)

THEME_SYSTEM_PROMPT = (
    "You are a feedback classification expert. "
    "Respond with only a single category name, exactly as provided in the list."
)

# One-line hints shown next to each category in the standalone theme prompt
THEME_HINTS = {
    "API Performance Issues": "timeouts, errors, slow responses, rate limiting",
    "Authentication Issues": "login problems, security concerns",
    "Billing UI Confusion": "billing dashboard, invoice issues, payment problems",
    "Customer Support Praise": "positive feedback about support team",
    "Dark Mode Requests": "dark theme, theme preferences",
    "Documentation Gaps": "missing docs, unclear instructions, need examples",
    "Feature Requests": "new features, enhancements, improvements",
    "Mobile App Bugs": "mobile issues, responsive design problems",
    "Performance Improvements": "speed, optimization, efficiency",
    "Product Praise": "general positive feedback, appreciation",
    "TypeScript SDK Feature Request": "TypeScript support, type safety",
    "Workers AI Praise": "positive feedback about AI features",
    "UI/UX Improvements": "design, user experience, interface",
    "Other": "anything that doesn't fit above categories",
}


def build_emotion_theme_prompt(content: str) -> str:
    return f"""Analyze the following feedback and provide:
1. Primary emotion (ONE word): {", ".join(EMOTIONS[:-1])}, or {EMOTIONS[-1]}
2. Theme category (ONE category from the list below)

Theme categories:
{_THEME_LINES}

Feedback: "{content}"

Respond in this exact format (one line):
emotion: [emotion word]
theme: [theme category]"""


def build_theme_prompt(content: str) -> str:
    categories = "\n".join(f"- {theme} ({THEME_HINTS[theme]})" for theme in THEMES)
    return f"""Analyze the following feedback and classify it into ONE of these theme categories. Choose the most appropriate category:

Categories:
{categories}

Feedback: "{content}"

Respond with ONLY the category name (exactly as listed above, case-sensitive):"""
