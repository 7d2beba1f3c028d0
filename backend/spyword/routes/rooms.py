from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game import service
from ..utils.ids import generate_room_id

bp = Blueprint("rooms", __name__)


@bp.post("/rooms")
def suggest_room_id():
    # Only a suggestion: the room exists once a player sends createRoom.
    length = current_app.config.get("ROOM_ID_LENGTH", 6)
    room_id = generate_room_id(length)
    while service.room_id_taken(room_id):
        room_id = generate_room_id(length)
    return jsonify({"roomId": room_id})


@bp.get("/rooms/<room_id>")
def get_room(room_id: str):
    room = service.find_room(room_id)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(service.room_public_state(room))
