from spyword.game import service


def test_health(http):
    resp = http.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True, "rooms": 0}


def test_suggest_room_id(http):
    resp = http.post("/api/rooms")
    room_id = resp.get_json()["roomId"]
    assert len(room_id) == 6
    # Suggesting an id does not create a room.
    assert service.find_room(room_id) is None


def test_get_room(http):
    service.create_room("R1", 3, 1, "Ann", avatar="🦊", sid="s1")
    state = http.get("/api/rooms/R1").get_json()
    assert state["roomId"] == "R1"
    assert state["phase"] == "waiting"
    assert state["players"] == [{"name": "Ann", "avatar": "🦊"}]
    assert "secretWord" not in state


def test_get_missing_room(http):
    resp = http.get("/api/rooms/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "room_not_found"}
