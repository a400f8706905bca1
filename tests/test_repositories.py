import pytest

from chat_relay.models.message import Message
from chat_relay.services.core.repositories import PreferenceStore, MessageLog
from chat_relay.services.exceptions import StorageError
from tests.helpers import broken_session_factory

pytestmark = pytest.mark.asyncio


def _message(sender, receiver, text):
    return Message(
        sender_id=sender,
        receiver_id=receiver,
        mode="text",
        original_text=text,
        translated_text=text.upper(),
        sender_language="English",
        receiver_language="English",
    )


async def test_unknown_user_gets_default_and_is_provisioned(preferences):
    assert await preferences.get("newcomer") == "English"

    user = await preferences.get_user("newcomer")
    assert user is not None
    assert user.preferred_language == "English"


async def test_set_then_get_returns_new_language(preferences):
    await preferences.get("bob")
    await preferences.set("bob", "Punjabi")
    assert await preferences.get("bob") == "Punjabi"


async def test_set_creates_missing_user(preferences):
    await preferences.set("alice", "French")
    assert await preferences.get("alice") == "French"


async def test_last_write_wins(preferences):
    await preferences.set("alice", "French")
    await preferences.set("alice", "Hindi")
    assert await preferences.get("alice") == "Hindi"


async def test_ensure_user_records_display_name(preferences):
    user = await preferences.ensure_user("alice", "Alice")
    assert user.display_name == "Alice"
    assert user.preferred_language == "English"

    await preferences.set("alice", "French")
    user = await preferences.ensure_user("alice", "Alice B.")
    assert user.display_name == "Alice B."
    assert user.preferred_language == "French"


async def test_custom_default_language(session_factory):
    store = PreferenceStore(session_factory, default_language="Hindi")
    assert await store.get("someone") == "Hindi"


async def test_append_assigns_id(message_log):
    saved = await message_log.append(_message("alice", "bob", "hi"))
    assert saved.id is not None
    assert saved.created_at is not None


async def test_recent_is_newest_last_and_limited(message_log):
    for i in range(5):
        await message_log.append(_message("alice", "bob", f"m{i}"))

    recent = await message_log.recent(3)

    assert [m.original_text for m in recent] == ["m2", "m3", "m4"]


async def test_recent_spans_all_conversations(message_log):
    await message_log.append(_message("alice", "bob", "one"))
    await message_log.append(_message("carol", "dave", "two"))

    recent = await message_log.recent(10)

    assert [m.original_text for m in recent] == ["one", "two"]


async def test_conversation_filters_to_pair_in_both_directions(message_log):
    await message_log.append(_message("alice", "bob", "a->b"))
    await message_log.append(_message("carol", "bob", "c->b"))
    await message_log.append(_message("bob", "alice", "b->a"))

    history = await message_log.conversation("alice", "bob", 10)

    assert [m.original_text for m in history] == ["a->b", "b->a"]


async def test_to_dict_uses_wire_field_names(message_log):
    saved = await message_log.append(_message("alice", "bob", "hi"))
    data = saved.to_dict()
    assert data["original"] == "hi"
    assert data["translated"] == "HI"
    assert data["timestamp"]


async def test_storage_failures_raise_storage_error():
    preferences = PreferenceStore(broken_session_factory, default_language="English")
    log = MessageLog(broken_session_factory)

    with pytest.raises(StorageError):
        await preferences.get("bob")
    with pytest.raises(StorageError):
        await preferences.set("bob", "French")
    with pytest.raises(StorageError):
        await log.append(_message("alice", "bob", "hi"))
    with pytest.raises(StorageError):
        await log.recent(5)


async def test_contacts_are_counterparts_most_recent_first(message_log):
    await message_log.append(_message("alice", "bob", "one"))
    await message_log.append(_message("carol", "alice", "two"))
    await message_log.append(_message("dave", "erin", "three"))
    await message_log.append(_message("bob", "alice", "four"))
    await message_log.append(_message("alice", "alice", "note to self"))

    assert await message_log.contacts("alice") == ["bob", "carol"]
    assert await message_log.contacts("erin") == ["dave"]
    assert await message_log.contacts("nobody") == []


async def test_contacts_storage_failure_raises_storage_error():
    with pytest.raises(StorageError):
        await MessageLog(broken_session_factory).contacts("alice")
