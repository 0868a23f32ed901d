"""Deterministic reshaping of LLM replies into the chat bullet layout."""

from __future__ import annotations

BULLET_MARKER = "• "
TODAY_FORECAST_LABEL = "오늘 예상 날씨:"


def strip_bold(text: str) -> str:
    """Remove markdown bold delimiters."""
    return (text or "").replace("**", "")


def format_reply(raw: str) -> str:
    """Turn '• '-separated model output into a header line plus '- ' bullets.

    The first segment is always treated as the header, even if the model
    opened with a bullet. A blank line separates the "today's expected
    weather" item from the ones before it.
    """
    segments = [s.strip() for s in strip_bold(raw).split(BULLET_MARKER)]
    segments = [s for s in segments if s]
    if not segments:
        return ""

    header, rest = segments[0], segments[1:]
    items = [f"- {s}" for s in rest]
    for idx, item in enumerate(items):
        if item[2:].startswith(TODAY_FORECAST_LABEL):
            items[idx] = f"\n{item}"
            break
    return "\n".join([header, *items])
