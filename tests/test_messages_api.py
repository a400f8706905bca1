"""
REST API tests: peer message submission, history, preferences, presence.
"""


def post_text(client, text, sender="alice", receiver="bob"):
    return client.post(
        "/api/peer-message",
        data={"sender_id": sender, "receiver_id": receiver, "mode": "text", "text": text},
    )


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"

    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["online_users"] == 0
    assert health["total_connections"] == 0

    assert client.get("/api/health").status_code == 404


def test_peer_message_probe(client):
    response = client.get("/api/peer-message")
    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_text_message_is_translated(client, language):
    response = post_text(client, "Bonjour")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "sender_language": "French",
        "receiver_language": "English",
        "original": "Bonjour",
        "translated": "Hello",
    }
    assert language.translate_calls == [("Bonjour", "French", "English")]


def test_text_message_lands_in_history_and_updates_sender(client):
    post_text(client, "Bonjour")

    history = client.get("/api/messages/history").json()
    assert history["total"] == 1
    message = history["messages"][0]
    assert message["sender_id"] == "alice"
    assert message["receiver_id"] == "bob"
    assert message["original"] == "Bonjour"
    assert message["translated"] == "Hello"
    assert message["mode"] == "text"
    assert message["timestamp"]

    assert client.get("/api/users/alice/language").json()["language"] == "French"


def test_missing_sender_is_rejected(client):
    response = client.post("/api/peer-message", data={"receiver_id": "bob", "text": "Bonjour"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Missing sender_id"}


def test_missing_receiver_is_rejected(client):
    response = client.post("/api/peer-message", data={"sender_id": "alice", "text": "Bonjour"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_empty_text_is_soft_success(client):
    response = post_text(client, "   ")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "sender_language": "Unknown",
        "receiver_language": "Unknown",
        "original": "",
        "translated": "",
    }
    assert client.get("/api/messages/history").json()["total"] == 0


def test_voice_message_is_transcribed(client, transcription):
    response = client.post(
        "/api/peer-message",
        data={"sender_id": "alice", "receiver_id": "bob", "mode": "voice"},
        files={"audio": ("note.webm", b"\x1aE\xdf\xa3fake-webm", "audio/webm")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["original"] == "Bonjour"
    assert body["translated"] == "Hello"
    assert transcription.calls[0]["filename"] == "note.webm"
    assert transcription.calls[0]["content_type"] == "audio/webm"

    assert client.get("/api/messages/history").json()["messages"][0]["mode"] == "voice"


def test_voice_without_file_is_rejected(client):
    response = client.post(
        "/api/peer-message",
        data={"sender_id": "alice", "receiver_id": "bob", "mode": "voice"},
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "No audio file uploaded."}


def test_unsupported_audio_type_is_rejected(client, transcription):
    response = client.post(
        "/api/peer-message",
        data={"sender_id": "alice", "receiver_id": "bob", "mode": "voice"},
        files={"audio": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400
    assert "Unsupported file format" in response.json()["error"]
    assert transcription.calls == []


def test_transcription_failure_maps_to_502(client, transcription):
    transcription.error = True

    response = client.post(
        "/api/peer-message",
        data={"sender_id": "alice", "receiver_id": "bob", "mode": "voice"},
        files={"audio": ("note.wav", b"RIFFfake", "audio/wav")},
    )

    assert response.status_code == 502
    assert response.json()["success"] is False
    assert client.get("/api/messages/history").json()["total"] == 0


def test_unsupported_mode_is_rejected(client):
    response = client.post(
        "/api/peer-message",
        data={"sender_id": "alice", "receiver_id": "bob", "mode": "video", "text": "hi"},
    )

    assert response.status_code == 400


def test_history_is_newest_last_and_limited(client):
    for text in ("Bonjour", "Hola", "Hello"):
        post_text(client, text)

    history = client.get("/api/messages/history", params={"limit": 2}).json()

    assert history["total"] == 2
    assert [m["original"] for m in history["messages"]] == ["Hola", "Hello"]


def test_history_conversation_filter(client):
    post_text(client, "Bonjour", sender="alice", receiver="bob")
    post_text(client, "Hola", sender="carol", receiver="bob")
    post_text(client, "Hello", sender="bob", receiver="alice")

    history = client.get(
        "/api/messages/history", params={"user_a": "bob", "user_b": "alice"}
    ).json()

    assert [m["original"] for m in history["messages"]] == ["Bonjour", "Hello"]


def test_history_needs_both_conversation_users(client):
    response = client.get("/api/messages/history", params={"user_a": "alice"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_history_limit_is_bounded(client):
    for limit in (0, -5, 10_000):
        response = client.get("/api/messages/history", params={"limit": limit})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "limit must be between 1 and 500"}


def test_language_defaults_for_unknown_user(client):
    response = client.get("/api/users/newcomer/language")

    assert response.status_code == 200
    assert response.json() == {"user_id": "newcomer", "language": "English"}


def test_language_update_drives_translation_target(client, language):
    response = client.put("/api/users/bob/language", json={"language": "Spanish"})
    assert response.status_code == 200
    assert response.json() == {"user_id": "bob", "language": "Spanish"}

    assert client.get("/api/users/bob/language").json()["language"] == "Spanish"

    body = post_text(client, "Bonjour").json()
    assert body["receiver_language"] == "Spanish"
    assert language.translate_calls[-1] == ("Bonjour", "French", "Spanish")


def test_language_update_rejects_empty_value(client):
    assert client.put("/api/users/bob/language", json={"language": ""}).status_code == 422


def test_status_of_offline_user(client):
    response = client.get("/api/users/bob/status")

    assert response.status_code == 200
    assert response.json() == {"user_id": "bob", "is_online": False, "connections": 0}


def test_contacts_list_counterparts_with_presence(client):
    post_text(client, "Bonjour", sender="alice", receiver="bob")
    post_text(client, "Hola", sender="carol", receiver="alice")

    response = client.get("/api/users/alice/contacts")

    assert response.status_code == 200
    assert response.json() == {
        "user_id": "alice",
        "contacts": [
            {"user_id": "carol", "display_name": "carol", "online": False},
            {"user_id": "bob", "display_name": "bob", "online": False},
        ],
    }


def test_contacts_empty_for_new_user(client):
    assert client.get("/api/users/newcomer/contacts").json() == {"user_id": "newcomer", "contacts": []}
