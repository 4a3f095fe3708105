"""Unit tests for the chat store and its persistence backends."""
import asyncio
import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from newschat.answer import AnswerDetails, StructuredAnswer
from newschat.chat import ChatStore, MessageRole, create_chat_persistence, derive_title
from newschat.chat.file import JsonFileChatPersistence
from newschat.chat.in_memory import InMemoryChatPersistence
from newschat.chat.sqlite import SQLiteChatPersistence
from newschat.config import DEFAULT_CHAT_TITLE, STORAGE_KEY
from newschat.errors import StorageError


class FailingPersistence(InMemoryChatPersistence):
    """Persistence whose reads and writes always fail."""

    async def read(self, key):
        raise StorageError("disk unavailable")

    async def write(self, key, value):
        raise StorageError("disk full")


class TestDeriveTitle:
    """Tests for chat title derivation."""

    def test_short_message_is_trimmed(self):
        """Test that surrounding whitespace is removed."""
        assert derive_title("  What moved BTC today?  ") == "What moved BTC today?"

    def test_fifty_characters_kept(self):
        """Test that a 50 character message is not marked as cut."""
        message = "a" * 50
        assert derive_title(message) == message

    def test_fifty_one_characters_truncated(self):
        """Test that a 51 character message becomes 50 characters plus ellipsis."""
        assert derive_title("b" * 51) == "b" * 50 + "..."

    @given(st.text())
    def test_title_length_bounded(self, message: str):
        """Property test: titles never exceed 50 characters plus the ellipsis."""
        title = derive_title(message)
        assert len(title) <= 53
        assert message.strip().startswith(title.removesuffix("..."))


class TestChatStoreMutations:
    """Tests for ChatStore mutations."""

    @pytest.mark.asyncio
    async def test_create_chat_becomes_current(self, store):
        """Test that a created chat is empty, titled and current."""
        thread_id = await store.create_chat()

        assert thread_id.startswith("thread-")
        assert store.current_thread_id == thread_id
        assert store.current_chat.title == DEFAULT_CHAT_TITLE
        assert store.current_chat.messages == []

    @pytest.mark.asyncio
    async def test_create_chat_ids_are_unique(self, store):
        """Test that chats created back to back get distinct ids."""
        ids = [await store.create_chat() for _ in range(20)]
        assert len(set(ids)) == 20
        assert len(store) == 20

    @pytest.mark.asyncio
    async def test_first_user_message_sets_title(self, store):
        """Test that only the first user message of an empty chat sets the title."""
        await store.create_chat()
        await store.add_message(MessageRole.USER, "What happened with Bitcoin today?")
        await store.add_message(MessageRole.ASSISTANT, "")
        await store.add_message(MessageRole.USER, "And Ethereum?")

        assert store.current_chat.title == "What happened with Bitcoin today?"

    @pytest.mark.asyncio
    async def test_messages_are_append_only(self, store):
        """Test that messages keep insertion order."""
        await store.create_chat()
        contents = ["first", "second", "third", "fourth"]
        for index, content in enumerate(contents):
            role = MessageRole.USER if index % 2 == 0 else MessageRole.ASSISTANT
            await store.add_message(role, content)

        assert [m.content for m in store.current_chat.messages] == contents

    @pytest.mark.asyncio
    async def test_updated_at_strictly_increases(self, store):
        """Test that every mutation moves updated_at forward."""
        await store.create_chat()
        stamps = [store.current_chat.updated_at]
        for content in ("a", "b", "c"):
            await store.add_message(MessageRole.USER, content)
            stamps.append(store.current_chat.updated_at)
        await store.update_last_message(content="edited")
        stamps.append(store.current_chat.updated_at)

        assert all(earlier < later for earlier, later in zip(stamps, stamps[1:]))

    @pytest.mark.asyncio
    async def test_add_message_without_current_chat_is_noop(self, store):
        """Test that adding to nothing neither raises nor creates a chat."""
        assert await store.add_message(MessageRole.USER, "hello") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_add_message_to_unknown_thread_is_noop(self, store):
        """Test that an unknown thread id is ignored."""
        await store.create_chat()
        result = await store.add_message(MessageRole.USER, "hello", thread_id="thread-missing")

        assert result is None
        assert len(store) == 1
        assert store.current_chat.messages == []

    @pytest.mark.asyncio
    async def test_update_last_message_merges_fields(self, store, sources):
        """Test that updates merge into the last message and keep its id."""
        await store.create_chat()
        await store.add_message(MessageRole.USER, "question")
        placeholder = await store.add_message(MessageRole.ASSISTANT, "")
        answer = StructuredAnswer(
            tldr="Short",
            details=AnswerDetails(content="Long [1]", citations=[1]),
            confidence=80,
            sources=sources,
        )

        updated = await store.update_last_message(id="other", answer=answer, content="Long [1]")

        assert updated.id == placeholder.id
        assert updated.role == MessageRole.ASSISTANT
        assert updated.content == "Long [1]"
        assert updated.answer == answer
        assert store.current_chat.messages[0].content == "question"

    @pytest.mark.asyncio
    async def test_update_last_message_noops(self, store):
        """Test that updates without a current chat or messages do nothing."""
        assert await store.update_last_message(content="x") is None
        await store.create_chat()
        assert await store.update_last_message(content="x") is None

    @pytest.mark.asyncio
    async def test_delete_current_chat_clears_selection(self, store):
        """Test that deleting the current chat deselects it."""
        thread_id = await store.create_chat()

        assert await store.delete_chat(thread_id) is True
        assert store.current_thread_id is None
        assert store.current_chat is None
        assert thread_id not in store

    @pytest.mark.asyncio
    async def test_delete_other_chat_keeps_selection(self, store):
        """Test that deleting another chat leaves the selection alone."""
        first = await store.create_chat()
        second = await store.create_chat()

        assert await store.delete_chat(first) is True
        assert store.current_thread_id == second
        assert await store.delete_chat("thread-missing") is False

    @pytest.mark.asyncio
    async def test_register_thread_is_idempotent(self, store):
        """Test that registering a known thread changes nothing."""
        assert await store.register_thread("thread-1", "Why is SOL up?") is True
        assert await store.register_thread("thread-1", "Something else") is False

        chat = store.get_chat("thread-1")
        assert chat.title == "Why is SOL up?"
        assert len(store) == 1
        assert store.current_thread_id is None

    @pytest.mark.asyncio
    async def test_register_thread_blank_seed(self, store):
        """Test that a blank seed falls back to the default title."""
        await store.register_thread("thread-1", "   ")
        assert store.get_chat("thread-1").title == DEFAULT_CHAT_TITLE

    @pytest.mark.asyncio
    async def test_load_chat(self, store):
        """Test selecting existing and unknown chats."""
        first = await store.create_chat()
        await store.create_chat()

        assert store.load_chat(first).thread_id == first
        assert store.current_thread_id == first
        assert store.load_chat("thread-missing") is None
        assert store.current_thread_id == first

    @pytest.mark.asyncio
    async def test_listeners_notified(self, store):
        """Test that listeners run after each mutation."""
        calls = []
        store.add_listener(lambda: calls.append("changed"))

        await store.create_chat()
        await store.add_message(MessageRole.USER, "hi")
        assert calls == ["changed", "changed"]


class TestChatStoreQueries:
    """Tests for ChatStore listing."""

    @pytest.mark.asyncio
    async def test_chats_ordered_by_recent_update(self, store):
        """Test that the most recently updated chat is listed first."""
        older = await store.create_chat()
        newer = await store.create_chat()
        assert [item.thread_id for item in store.chats] == [newer, older]

        await store.add_message(MessageRole.USER, "bump", thread_id=older)
        assert [item.thread_id for item in store.chats] == [older, newer]

    @pytest.mark.asyncio
    async def test_list_item_projection(self, store):
        """Test the listing projection of a chat."""
        thread_id = await store.create_chat()
        await store.add_message(MessageRole.USER, "What moved markets?")
        await store.add_message(MessageRole.ASSISTANT, "Macro data")

        item = store.chats[0]
        assert item.thread_id == thread_id
        assert item.title == "What moved markets?"
        assert item.last_message == "Macro data"


class TestChatStorePersistence:
    """Tests for loading and flushing the chat map."""

    @pytest.mark.asyncio
    async def test_reload_round_trip(self, persistence, sources):
        """Test that a second store over the same backend sees the same chats."""
        store = ChatStore(persistence)
        await store.connect()
        thread_id = await store.create_chat()
        await store.add_message(MessageRole.USER, "question")
        await store.add_message(MessageRole.ASSISTANT, "")
        await store.update_last_message(
            answer=StructuredAnswer(tldr="t", details=AnswerDetails(content="d [2]"), sources=sources),
            content="d [2]",
        )

        reloaded = ChatStore(persistence)
        await reloaded.connect()

        assert reloaded.get_chat(thread_id) == store.get_chat(thread_id)
        assert reloaded.current_thread_id is None

    @pytest.mark.asyncio
    async def test_persisted_schema_is_camel_case(self, persistence):
        """Test that the stored payload maps thread ids to camelCase chats."""
        store = ChatStore(persistence)
        thread_id = await store.create_chat()
        await store.add_message(MessageRole.USER, "question")

        payload = json.loads(await persistence.read(STORAGE_KEY))
        chat = payload[thread_id]
        assert chat["threadId"] == thread_id
        assert "createdAt" in chat and "updatedAt" in chat
        assert chat["messages"][0]["role"] == "user"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not json", "[1, 2, 3]", '{"t": {"title": 5}}'])
    async def test_corrupt_payload_loads_empty(self, raw):
        """Test that unreadable data yields an empty store."""
        store = ChatStore(InMemoryChatPersistence({STORAGE_KEY: raw}))
        await store.connect()
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_absent_payload_loads_empty(self, store):
        """Test that a fresh backend yields an empty store."""
        await store.connect()
        assert store.chats == []

    @pytest.mark.asyncio
    async def test_storage_failures_keep_memory_state(self):
        """Test that failing reads and writes are logged, not raised."""
        store = ChatStore(FailingPersistence())
        await store.connect()

        thread_id = await store.create_chat()
        await store.add_message(MessageRole.USER, "still works")

        assert store.get_chat(thread_id).messages[0].content == "still works"

    @pytest.mark.asyncio
    async def test_file_backend_round_trip(self, tmp_path):
        """Test the JSON file backend."""
        store = ChatStore(JsonFileChatPersistence(tmp_path / "chats"))
        await store.connect()
        thread_id = await store.create_chat()
        await store.add_message(MessageRole.USER, "file question")
        await store.disconnect()

        assert (tmp_path / "chats" / f"{STORAGE_KEY}.json").exists()

        reloaded = ChatStore(JsonFileChatPersistence(tmp_path / "chats"))
        await reloaded.connect()
        assert reloaded.get_chat(thread_id).title == "file question"

    @pytest.mark.asyncio
    async def test_file_backend_rejects_unsafe_keys(self, tmp_path):
        """Test that keys cannot escape the storage directory."""
        persistence = JsonFileChatPersistence(tmp_path)
        with pytest.raises(ValueError):
            await persistence.read("../outside")

    @pytest.mark.asyncio
    async def test_sqlite_backend_round_trip(self, tmp_path):
        """Test the SQLite backend."""
        db_path = tmp_path / "chats.db"
        store = ChatStore(SQLiteChatPersistence(db_path))
        await store.connect()
        thread_id = await store.create_chat()
        await store.add_message(MessageRole.USER, "sqlite question")
        await store.add_message(MessageRole.USER, "second write")
        await store.disconnect()

        reloaded = ChatStore(SQLiteChatPersistence(db_path))
        await reloaded.connect()
        assert [m.content for m in reloaded.get_chat(thread_id).messages] == [
            "sqlite question",
            "second write",
        ]
        await reloaded.disconnect()

    @pytest.mark.asyncio
    async def test_sqlite_requires_connection(self, tmp_path):
        """Test that using SQLite before connect raises StorageError."""
        persistence = SQLiteChatPersistence(tmp_path / "chats.db")
        with pytest.raises(StorageError):
            await persistence.read(STORAGE_KEY)

    @pytest.mark.asyncio
    async def test_file_backend_invalid_utf8_loads_empty(self, tmp_path):
        """Test that undecodable bytes in the store file yield an empty store."""
        (tmp_path / f"{STORAGE_KEY}.json").write_bytes(b"\xff\xfe{bad")
        persistence = JsonFileChatPersistence(tmp_path)

        with pytest.raises(StorageError):
            await persistence.read(STORAGE_KEY)

        store = ChatStore(persistence)
        await store.connect()
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_file_backend_unusable_directory(self, tmp_path):
        """Test that an uncreatable directory keeps the store in memory."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = ChatStore(JsonFileChatPersistence(blocker / "chats"))

        await store.connect()
        thread_id = await store.create_chat()
        await store.add_message(MessageRole.USER, "kept in memory")

        assert store.get_chat(thread_id).title == "kept in memory"

    @pytest.mark.asyncio
    async def test_sqlite_corrupt_database(self, tmp_path):
        """Test that a file that is not a database yields a working empty store."""
        db_path = tmp_path / "chats.db"
        db_path.write_bytes(b"definitely not sqlite " * 64)
        persistence = SQLiteChatPersistence(db_path)

        with pytest.raises(StorageError):
            await persistence.connect()
        assert persistence._connection is None

        store = ChatStore(persistence)
        await store.connect()
        thread_id = await store.create_chat()
        await store.add_message(MessageRole.USER, "still answering")
        await store.disconnect()

        assert store.get_chat(thread_id).messages[0].content == "still answering"

    @settings(max_examples=30, deadline=None)
    @given(st.lists(st.text(max_size=80), min_size=1, max_size=6))
    def test_serialize_round_trip(self, contents: list[str]):
        """Property test: serialized chats deserialize to equal chats."""
        async def _scenario():
            store = ChatStore(InMemoryChatPersistence())
            await store.create_chat()
            for content in contents:
                await store.add_message(MessageRole.USER, content)
            return store

        store = asyncio.run(_scenario())
        restored = ChatStore.deserialize(store.serialize())

        assert set(restored) == {item.thread_id for item in store.chats}
        assert restored == {thread_id: store.get_chat(thread_id) for thread_id in restored}


class TestChatPersistenceFactory:
    """Tests for create_chat_persistence."""

    def test_create_known_backends(self, tmp_path):
        """Test that every supported backend can be created."""
        assert create_chat_persistence("memory").backend_type == "memory"
        assert create_chat_persistence("file", path=tmp_path).backend_type == "file"
        assert create_chat_persistence("sqlite", path=tmp_path / "x.db").backend_type == "sqlite"

    def test_unsupported_backend(self):
        """Test that unknown backends are rejected."""
        with pytest.raises(ValueError, match="Unsupported chat store backend"):
            create_chat_persistence("redis")
