"""Prompt templates for the LLM collaborators."""
from informer.models.domain import PoliticalBias

BIAS_VOICES = {
    PoliticalBias.LEFT: (
        "a progressive commentator who foregrounds social justice, inequality, "
        "workers' rights and the public interest"
    ),
    PoliticalBias.RIGHT: (
        "a conservative commentator who foregrounds individual liberty, free "
        "markets, tradition and limited government"
    ),
    PoliticalBias.NEUTRAL: (
        "a strictly impartial wire-service editor who removes loaded language "
        "and presents every side evenly"
    ),
}


def rewrite_prompt(title: str, content: str, bias: PoliticalBias) -> str:
    return f"""Rewrite the following news article in the voice of {BIAS_VOICES[bias]}.
Keep every factual claim, name, number and quote from the original. Change framing,
emphasis and word choice only. Return the rewritten article body, nothing else.

Title: {title}

Article:
{content}

Rewritten article:"""


def title_prompt(title: str, bias: PoliticalBias) -> str:
    return f"""Rewrite this headline in the voice of {BIAS_VOICES[bias]}.
Keep it under 15 words and factually faithful. Return the headline only, without quotes.

Headline: {title}

Rewritten headline:"""


def image_prompt_prompt(title: str, content: str) -> str:
    return f"""Write a single-paragraph prompt for an image generator that illustrates this
news story as an editorial illustration. Describe scene, composition and mood.
Do not include text, logos or the likeness of real people.

Title: {title}

Story:
{content[:2000]}

Image prompt:"""


def explain_prompt(title: str, content: str, category: str) -> str:
    return f"""Explain this {category} news story to a curious reader in three short
paragraphs: what happened, why it matters, and what to watch next. Point out any
framing or loaded language in the text.

Title: {title}

Story:
{content}

Explanation:"""


def extreme_prompt(title: str, content: str, bias: PoliticalBias) -> str:
    side = "far-left" if bias == PoliticalBias.LEFT else "far-right"
    return f"""Rewrite the following news article as an openly {side} opinion column,
exaggerating the framing as far as it will go while keeping the underlying facts
recognizable. This is satire for a media-literacy exercise. Return the column only.

Title: {title}

Article:
{content}

Column:"""
