import unittest

from advisor import conversation_manager
from advisor.domain import Role


class TestConversationManager(unittest.TestCase):
    def setUp(self):
        conversation_manager.use_in_memory_store_for_tests()
        conversation_manager.clear_conversations()

    def test_key_precedence(self):
        self.assertEqual(conversation_manager.conversation_key("s1", "u1"), "s1")
        self.assertEqual(conversation_manager.conversation_key(None, "u1"), "u1")
        self.assertEqual(conversation_manager.conversation_key(None, None), "global")

    def test_user_and_assistant_turns(self):
        conversation_manager.add_user_message("k", "질문")
        conversation_manager.add_assistant_message("k", "답변")
        history = conversation_manager.get_history("k")
        self.assertEqual([t.role for t in history], [Role.USER, Role.ASSISTANT])

    def test_trim_defaults_to_configured_window(self):
        for i in range(8):
            conversation_manager.add_user_message("k", f"q{i}")
            conversation_manager.add_assistant_message("k", f"a{i}")
        conversation_manager.trim("k")
        history = conversation_manager.get_history("k")
        self.assertEqual(len(history), 10)
        self.assertEqual(history[0].text, "q3")
        self.assertEqual(history[-1].text, "a7")

    def test_delete_conversation(self):
        conversation_manager.add_user_message("k", "hi")
        conversation_manager.delete_conversation("k")
        self.assertEqual(conversation_manager.get_history("k"), [])


if __name__ == "__main__":
    unittest.main()
