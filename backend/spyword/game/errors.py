from __future__ import annotations


class GameError(Exception):
    """A rejected player action.

    Raised before any state is touched, so the room stays as it was. The
    ``code`` is the machine-readable form sent back to the caller.
    """

    code = "game_error"
    default_message = "Action not allowed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidConfiguration(GameError):
    code = "invalid_configuration"
    default_message = "The number of outsiders must be smaller than the room size."


class InvalidPayload(GameError):
    code = "invalid_payload"
    default_message = "Invalid or missing fields."


class DuplicateId(GameError):
    code = "duplicate_id"
    default_message = "This room id is already taken."


class RoomNotFound(GameError):
    code = "room_not_found"
    default_message = "Room does not exist."


class PlayerNotFound(GameError):
    code = "player_not_found"
    default_message = "Player is not in this room."


class RoomFull(GameError):
    code = "room_full"
    default_message = "Room is full."


class NameTaken(GameError):
    code = "name_taken"
    default_message = "Name is already taken."


class GameAlreadyStarted(GameError):
    code = "game_already_started"
    default_message = "Game has already started."


class AlreadyInRoom(GameError):
    code = "already_in_room"
    default_message = "You are already seated in a room."


class WrongPhase(GameError):
    code = "wrong_phase"
    default_message = "This action is not possible right now."
