"""
End-to-end tests of the WebSocket server.
"""

from fastapi.testclient import TestClient
from cah_engine.channel import QueueChannel
from cah_engine.errors import INVALID_EVENT
from cah_engine.ws.events import ErrorEvent
from cah_engine.ws.server import create_app, reply


def receive_until(websocket, event_type):
    """Read events until one of `event_type` arrives and return it."""
    while True:
        event = websocket.receive_json()
        if event["type"] == event_type:
            return event


def login(websocket, name):
    websocket.send_json({"type": "login", "name": name})
    accepted = receive_until(websocket, "login_accepted")
    return accepted["player_id"]


def test_health(make_session):
    with TestClient(create_app(make_session())) as client:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["session"]["players"] == []
        assert data["session"]["round"] is None


def test_full_round_over_websockets(make_session):
    with TestClient(create_app(make_session())) as client:
        with client.websocket_connect("/ws") as alice, \
                client.websocket_connect("/ws") as bob, \
                client.websocket_connect("/ws") as carol:
            sockets = {"Alice": alice, "Bob": bob, "Carol": carol}
            ids = {name: login(websocket, name) for name, websocket in sockets.items()}

            rounds = {name: receive_until(websocket, "new_round") for name, websocket in sockets.items()}
            czars = [name for name, event in rounds.items() if event["role"] == "czar"]
            assert len(czars) == 1
            czar = czars[0]
            first, second = [name for name in sockets if name != czar]

            for name in (first, second):
                card = rounds[name]["hand"][0]
                sockets[name].send_json({"type": "submit_answer", "cards": [card]})
                receive_until(sockets[name], "answer_accepted")

            for websocket in sockets.values():
                ready = receive_until(websocket, "ready_to_judge")
                assert ready["answers"] == {
                    str(ids[first]): [rounds[first]["hand"][0]],
                    str(ids[second]): [rounds[second]["hand"][0]],
                }

            sockets[czar].send_json({"type": "submit_judgement", "winning_player_id": ids[first]})
            for websocket in sockets.values():
                ended = receive_until(websocket, "round_ended")
                assert ended["winner"] == first
                assert ended["winning_answers"] == [rounds[first]["hand"][0]]
                assert ended["scores"] == {first: 1, second: 0, czar: 0}
                assert receive_until(websocket, "new_round")["prompt"] != rounds[first]["prompt"]


def test_disconnect_below_min_players_ends_game(make_session):
    with TestClient(create_app(make_session())) as client:
        with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
            login(alice, "Alice")
            login(bob, "Bob")
            with client.websocket_connect("/ws") as carol:
                login(carol, "Carol")
                receive_until(carol, "new_round")

            assert receive_until(alice, "player_left")["name"] == "Carol"
            receive_until(alice, "game_ended")
            receive_until(bob, "game_ended")

            session = client.get("/health").json()["session"]
            assert session["round"] is None
            assert session["answers"]["out"] == 0


def test_malformed_frames_keep_connection_open(make_session):
    with TestClient(create_app(make_session())) as client:
        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("not json")
            error = websocket.receive_json()
            assert error["type"] == "error"
            assert error["code"] == "INVALID_EVENT"

            websocket.send_json({"type": "submit_judgement"})
            assert websocket.receive_json()["code"] == "INVALID_EVENT"

            assert login(websocket, "Alice") == 1


def test_halted_session_reports_internal_error(make_session):
    with TestClient(create_app(make_session(n_answers=5))) as client:
        with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
            login(alice, "Alice")
            bob.send_json({"type": "login", "name": "Bob"})
            error = receive_until(bob, "error")
            assert error["code"] == "INTERNAL_ERROR"
            assert client.get("/health").json()["status"] == "halted"


def test_reply_to_closed_channel_reports_failure():
    channel = QueueChannel()
    assert reply(channel, 1, ErrorEvent(code=INVALID_EVENT, message="bad frame"))
    assert channel.pending() == 1

    channel.close()
    assert not reply(channel, 1, ErrorEvent(code=INVALID_EVENT, message="bad frame"))
    assert channel.pending() == 1
