import unittest

from advisor.formatting import format_reply, strip_bold


class TestFormatReply(unittest.TestCase):
    def test_header_and_bullets(self):
        raw = "서울은 맑아요. • 기온: 21℃ • 강수 확률: 10%"
        self.assertEqual(format_reply(raw), "서울은 맑아요.\n- 기온: 21℃\n- 강수 확률: 10%")

    def test_blank_line_before_today_forecast(self):
        raw = "요약입니다. • 현재 기온: 20℃ • 오늘 예상 날씨: 최고 25℃ • 우산은 필요 없어요"
        out = format_reply(raw)
        self.assertEqual(
            out,
            "요약입니다.\n- 현재 기온: 20℃\n\n- 오늘 예상 날씨: 최고 25℃\n- 우산은 필요 없어요",
        )

    def test_bold_markers_removed(self):
        self.assertEqual(format_reply("**주의** • **강풍**"), "주의\n- 강풍")

    def test_leading_bullet_becomes_header(self):
        self.assertEqual(format_reply("• 첫째 • 둘째"), "첫째\n- 둘째")

    def test_empty_segments_dropped(self):
        self.assertEqual(format_reply("헤더 •  • 항목 • "), "헤더\n- 항목")
        self.assertEqual(format_reply("   "), "")

    def test_plain_text_unchanged(self):
        self.assertEqual(format_reply("그냥 한 문장."), "그냥 한 문장.")

    def test_idempotent_on_formatted_output(self):
        once = format_reply("요약 • 하나 • 오늘 예상 날씨: 맑음")
        self.assertEqual(format_reply(once), once)


class TestStripBold(unittest.TestCase):
    def test_none_safe(self):
        self.assertEqual(strip_bold(None), "")


if __name__ == "__main__":
    unittest.main()
