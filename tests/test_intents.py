import unittest

from advisor.domain import ConversationTurn, IntentFacet, Role
from advisor.errors import SummarizerError
from advisor.intents import (
    build_intent_instruction,
    classify,
    mentions_air_quality,
    mentions_graph_terms,
    mentions_pollen,
    parse_facets,
)


class ScriptedSummarizer:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate(self, history):
        self.calls.append(list(history))
        if self.error:
            raise self.error
        return self.reply


class TestKeywordGuards(unittest.TestCase):
    def test_pollen(self):
        self.assertTrue(mentions_pollen("오늘 꽃가루 많아?"))
        self.assertTrue(mentions_pollen("Is POLLEN bad today?"))
        self.assertFalse(mentions_pollen("오늘 비 와?"))

    def test_air_quality(self):
        self.assertTrue(mentions_air_quality("미세먼지 어때?"))
        self.assertTrue(mentions_air_quality("how is the fine dust"))
        self.assertFalse(mentions_air_quality("바람 세?"))

    def test_graph_terms(self):
        self.assertTrue(mentions_graph_terms("오늘 기온 어때?"))
        self.assertTrue(mentions_graph_terms("뭐 입을까?"))
        self.assertTrue(mentions_graph_terms("What should I wear today"))
        self.assertFalse(mentions_graph_terms("우산 챙겨?"))


class TestParseFacets(unittest.TestCase):
    def test_comma_separated_korean(self):
        self.assertEqual(parse_facets("기온, 우산 여부"), {IntentFacet.TEMPERATURE, IntentFacet.UMBRELLA_RAIN})

    def test_unknown_tokens_dropped(self):
        self.assertEqual(parse_facets("자외선, 행복지수"), {IntentFacet.UV})

    def test_punctuation_and_case(self):
        self.assertEqual(parse_facets("[Wind]. UV!"), {IntentFacet.WIND, IntentFacet.UV})

    def test_empty(self):
        self.assertEqual(parse_facets(""), set())


class TestClassify(unittest.TestCase):
    def test_appends_instruction_after_history(self):
        summarizer = ScriptedSummarizer("미세먼지, 꽃가루")
        history = [ConversationTurn(role=Role.USER, text="안녕")]

        facets = classify("산책 가도 될까?", history, summarizer)

        self.assertEqual(facets, {IntentFacet.AIR_QUALITY, IntentFacet.POLLEN})
        sent = summarizer.calls[0]
        self.assertEqual(sent[0].text, "안녕")
        self.assertEqual(sent[-1].text, build_intent_instruction("산책 가도 될까?"))
        self.assertEqual(len(history), 1)

    def test_failure_means_no_facets(self):
        summarizer = ScriptedSummarizer(error=SummarizerError("quota", status_code=429))
        self.assertEqual(classify("오늘 날씨", [], summarizer), set())


if __name__ == "__main__":
    unittest.main()
