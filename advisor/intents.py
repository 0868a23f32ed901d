"""Facet classification for user questions.

Two layers decide which data a question needs:

* literal keyword guards for pollen and fine dust, checked first by the
  orchestrator and routed to dedicated single-facet replies;
* an advisory LLM classification mapping the question onto the facet
  vocabulary for the general reply.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence, Set

from advisor.domain import ConversationTurn, IntentFacet, Role
from advisor.errors import SummarizerError
from advisor.summarizers.base import Summarizer
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="intents")

POLLEN_KEYWORDS = ("꽃가루", "pollen")
AIR_QUALITY_KEYWORDS = ("미세먼지", "fine dust", "particulate")
GRAPH_KEYWORDS = (
    "온도", "기온", "그래프", "뭐 입을까", "뭐 입지", "옷",
    "temperature", "temp", "graph", "what should i wear", "what to wear", "clothing", "outfit",
)

# Labels offered to the model, in the order they appear in the instruction.
FACET_LABELS = ("기온", "우산 여부", "미세먼지", "자외선", "이슬점", "구름", "바람", "옷차림", "일출일몰", "가시거리", "꽃가루", "비")

# Tokens are matched after splitting on commas/whitespace, so multi-word
# labels ("우산 여부") are covered by their distinctive word.
FACET_SYNONYMS = {
    "기온": IntentFacet.TEMPERATURE,
    "온도": IntentFacet.TEMPERATURE,
    "temperature": IntentFacet.TEMPERATURE,
    "우산": IntentFacet.UMBRELLA_RAIN,
    "비": IntentFacet.UMBRELLA_RAIN,
    "umbrella": IntentFacet.UMBRELLA_RAIN,
    "rain": IntentFacet.UMBRELLA_RAIN,
    "umbrella/rain": IntentFacet.UMBRELLA_RAIN,
    "umbrella_rain": IntentFacet.UMBRELLA_RAIN,
    "미세먼지": IntentFacet.AIR_QUALITY,
    "air_quality": IntentFacet.AIR_QUALITY,
    "자외선": IntentFacet.UV,
    "uv": IntentFacet.UV,
    "이슬점": IntentFacet.DEW_POINT,
    "dew_point": IntentFacet.DEW_POINT,
    "구름": IntentFacet.CLOUD,
    "cloud": IntentFacet.CLOUD,
    "바람": IntentFacet.WIND,
    "wind": IntentFacet.WIND,
    "옷차림": IntentFacet.CLOTHING,
    "clothing": IntentFacet.CLOTHING,
    "일출일몰": IntentFacet.SUNRISE_SUNSET,
    "sunrise_sunset": IntentFacet.SUNRISE_SUNSET,
    "가시거리": IntentFacet.VISIBILITY,
    "visibility": IntentFacet.VISIBILITY,
    "꽃가루": IntentFacet.POLLEN,
    "pollen": IntentFacet.POLLEN,
}

_TOKEN_SPLIT = re.compile(r"[\n,\s]+")
_TOKEN_STRIP = "[](){}.:;!?\"'`*-•"


def _contains_any(utterance: str, keywords: Iterable[str]) -> bool:
    lowered = (utterance or "").lower()
    return any(k in lowered for k in keywords)


def mentions_pollen(utterance: str) -> bool:
    """True when the question literally asks about pollen."""
    return _contains_any(utterance, POLLEN_KEYWORDS)


def mentions_air_quality(utterance: str) -> bool:
    """True when the question literally asks about fine dust / particulate matter."""
    return _contains_any(utterance, AIR_QUALITY_KEYWORDS)


def mentions_graph_terms(utterance: str) -> bool:
    """True when the question is about temperature trends or what to wear."""
    return _contains_any(utterance, GRAPH_KEYWORDS)


def build_intent_instruction(utterance: str) -> str:
    """The fixed classification instruction for one question."""
    return (
        f'"{utterance}" 이 문장에서 사용자가 알고 싶어하는 날씨 정보 항목을 다음 중에서 골라줘: \n'
        f"[{', '.join(FACET_LABELS)}] 중 해당 항목만 한두개 정도 추려서 쉼표로 구분해줘."
    )


def parse_facets(raw: str) -> Set[IntentFacet]:
    """Map a model's comma-separated answer onto the facet vocabulary, dropping unknown tokens."""
    facets: Set[IntentFacet] = set()
    for token in _TOKEN_SPLIT.split((raw or "").casefold()):
        token = token.strip(_TOKEN_STRIP)
        if not token:
            continue
        facet = FACET_SYNONYMS.get(token)
        if facet is not None:
            facets.add(facet)
    return facets


def classify(utterance: str, history: Sequence[ConversationTurn], summarizer: Summarizer) -> Set[IntentFacet]:
    """Ask the summarizer which facets the question needs.

    The answer is advisory: a failed call yields an empty set, which means
    "answer generally".
    """
    turns = [*history, ConversationTurn(role=Role.USER, text=build_intent_instruction(utterance))]
    try:
        raw = summarizer.generate(turns)
    except SummarizerError as exc:
        logger.warning("Intent classification failed; answering generally",
                       extra={"status_code": exc.status_code, "error": exc.message})
        return set()
    facets = parse_facets(raw)
    logger.debug("Classified facets", extra={"raw": raw, "facets": sorted(f.value for f in facets)})
    return facets
