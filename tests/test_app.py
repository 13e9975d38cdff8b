import pytest
from fastapi.testclient import TestClient

from app import create_app


@pytest.fixture
def app():
    return create_app(static_dir=None)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def join(ws, room, participant_id):
    ws.send_json({"type": "join", "room": room, "id": participant_id})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_two_participants_pair_and_exchange(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        join(alice, "room1", "alice")
        assert alice.receive_json() == {"type": "joined", "room": "room1", "id": "alice", "participants": 1}

        join(bob, "room1", "bob")
        assert bob.receive_json() == {"type": "joined", "room": "room1", "id": "bob", "participants": 2}
        assert bob.receive_json() == {"type": "peer-joined", "peerId": "alice", "shouldCreateOffer": False}
        assert alice.receive_json() == {"type": "peer-joined", "peerId": "bob", "shouldCreateOffer": True}

        alice.send_json({"type": "offer", "offer": {"type": "offer", "sdp": "v=0"}})
        assert bob.receive_json() == {"type": "offer", "offer": {"type": "offer", "sdp": "v=0"}, "from": "alice"}

        bob.send_json({"type": "answer", "answer": {"type": "answer", "sdp": "v=0"}})
        assert alice.receive_json() == {"type": "answer", "answer": {"type": "answer", "sdp": "v=0"}, "from": "bob"}

        alice.send_json({"type": "ice-candidate", "candidate": {"candidate": "c1", "sdpMid": "0"}})
        assert bob.receive_json() == {"type": "ice-candidate", "candidate": {"candidate": "c1", "sdpMid": "0"}, "from": "alice"}

        alice.send_json({"type": "leave"})
        assert bob.receive_json() == {"type": "peer-left", "peerId": "alice"}

        details = client.get("/rooms/room1").json()
        assert details["participant_ids"] == ["bob"]
        assert details["participants"] == 1
        assert details["is_full"] is False


def test_third_participant_rejected(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        join(alice, "room1", "alice")
        alice.receive_json()
        join(bob, "room1", "bob")
        bob.receive_json()
        bob.receive_json()

        with client.websocket_connect("/") as carol:
            join(carol, "room1", "carol")
            assert carol.receive_json() == {
                "type": "error",
                "message": "Room is full. Maximum 2 participants allowed.",
            }

        details = client.get("/rooms/room1").json()
        assert sorted(details["participant_ids"]) == ["alice", "bob"]
        assert details["is_full"] is True


def test_disconnect_notifies_remaining_participant(client, app):
    with client.websocket_connect("/ws") as alice:
        join(alice, "room1", "alice")
        alice.receive_json()

        with client.websocket_connect("/ws") as bob:
            join(bob, "room1", "bob")
            bob.receive_json()
            bob.receive_json()
            alice.receive_json()

        assert alice.receive_json() == {"type": "peer-left", "peerId": "bob"}
        assert app.state.registry.participant_ids("room1") == ["alice"]

    assert client.get("/rooms/room1").status_code == 404


def test_malformed_message_reply(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("this is not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

        ws.send_json({"type": "join", "room": "room1"})
        assert ws.receive_json() == {"type": "error", "message": "Room name and ID are required"}

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_status_and_room_listing(client):
    assert client.get("/status").json()["rooms"] == 0

    with client.websocket_connect("/ws") as alice:
        join(alice, "room1", "alice")
        alice.receive_json()

        status = client.get("/status").json()
        assert status["rooms"] == 1
        assert status["participants"] == 1
        assert status["connections"] == 1

        assert client.get("/rooms/").json() == [{"room_id": "room1", "participants": 1, "is_full": False}]


def test_unknown_room_is_404(client):
    response = client.get("/rooms/nowhere")
    assert response.status_code == 404
    assert response.json() == {"detail": "Room not found"}


def test_idle_session_survives_liveness_cycles(client, app):
    monitor = app.state.monitor
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        join(alice, "room1", "alice")
        alice.receive_json()
        join(bob, "room1", "bob")
        bob.receive_json()
        bob.receive_json()
        alice.receive_json()

        for _ in range(3):
            assert client.portal.call(monitor.sweep) == 0

        assert sorted(app.state.registry.participant_ids("room1")) == ["alice", "bob"]

        # Both still reachable, and the next thing alice sees is the relayed answer
        bob.send_json({"type": "answer", "answer": {"sdp": "v=0"}})
        assert alice.receive_json() == {"type": "answer", "answer": {"sdp": "v=0"}, "from": "bob"}
