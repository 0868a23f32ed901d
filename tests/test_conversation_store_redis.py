import unittest

from advisor.conversation_store.redis import RedisConversationStore
from advisor.domain import ConversationTurn, Role


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expires = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.expires[key] = ttl

    def get(self, key):
        return self.store.get(key)

    def expire(self, key, ttl):
        self.expires[key] = ttl

    def delete(self, key):
        self.store.pop(key, None)
        self.expires.pop(key, None)

    def scan_iter(self, pattern):
        prefix = pattern.rstrip("*")
        return [k for k in list(self.store.keys()) if k.startswith(prefix)]


class TestRedisConversationStore(unittest.TestCase):
    def test_append_get_delete_round_trip(self):
        client = FakeRedis()
        store = RedisConversationStore(client, ttl_seconds=10, prefix="conversation:")

        store.append("u1", ConversationTurn(role=Role.USER, text="서울 날씨?"))
        store.append("u1", ConversationTurn(role=Role.ASSISTANT, text="맑아요"))
        self.assertIn("conversation:u1", client.store)

        history = store.get_history("u1")
        self.assertEqual([(t.role, t.text) for t in history], [(Role.USER, "서울 날씨?"), (Role.ASSISTANT, "맑아요")])
        self.assertEqual(client.expires["conversation:u1"], 10)

        store.delete("u1")
        self.assertEqual(store.get_history("u1"), [])

    def test_trim(self):
        client = FakeRedis()
        store = RedisConversationStore(client, ttl_seconds=10)
        for i in range(13):
            store.append("k", ConversationTurn(role=Role.USER, text=str(i)))
        store.trim("k", 10)
        self.assertEqual([t.text for t in store.get_history("k")], [str(i) for i in range(3, 13)])

    def test_corrupt_data_reads_as_empty(self):
        client = FakeRedis()
        store = RedisConversationStore(client, ttl_seconds=10, prefix="conversation:")
        client.store["conversation:bad"] = b"not-json"
        self.assertEqual(store.get_history("bad"), [])

    def test_clear_removes_prefixed_keys(self):
        client = FakeRedis()
        store = RedisConversationStore(client, ttl_seconds=10, prefix="conversation:")
        store.append("a", ConversationTurn(role=Role.USER, text="x"))
        client.store["conversation:other"] = b"junk"
        client.store["unrelated"] = b"keep"

        store.clear()

        self.assertEqual(client.store, {"unrelated": b"keep"})


if __name__ == "__main__":
    unittest.main()
