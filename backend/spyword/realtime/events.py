from __future__ import annotations

from ..game import service
from ..game.models import Player, Room


# Inbound
CREATE_ROOM = "createRoom"
JOIN_ROOM = "joinRoom"
SUBMIT_WORDS = "submitWords"
VOTE = "vote"
LEAVE_ROOM = "leaveRoom"

# Outbound
ROOM_CREATED = "roomCreated"
ROOM_JOINED = "roomJoined"
ROOM_FULL = "roomFull"
START_WORD_INPUT = "startWordInput"
WORDS_COMMITTED = "wordsCommitted"
COUNTDOWN = "countdown"
GAME_START = "gameStart"
START_VOTING = "startVoting"
VOTE_UPDATE = "voteUpdate"
VOTE_RESULT = "voteResult"
GAME_OVER = "gameOver"
ERROR = "error"

ROLE_INSIDER = "insider"
ROLE_OUTSIDER = "outsider"


def room_created(room: Room) -> dict:
    return {"roomId": room.id, "players": service.public_roster(room)}


def room_joined(room: Room) -> dict:
    return {
        "roomId": room.id,
        "players": service.public_roster(room),
        "currentCount": len(room.players),
        "capacity": room.capacity,
    }


def room_full(room: Room) -> dict:
    return {
        "message": f"Room is full ({len(room.players)}/{room.capacity})",
        "currentCount": len(room.players),
        "capacity": room.capacity,
    }


def words_committed(room: Room) -> dict:
    return {
        "committedPlayers": list(room.committed_players),
        "total": room.capacity,
        "current": len(room.committed_players),
    }


def game_start(room: Room, player: Player) -> dict:
    """Private payload: only insiders get the word."""
    if player.is_outsider:
        return {"role": ROLE_OUTSIDER, "word": None, "players": service.public_roster(room)}
    return {"role": ROLE_INSIDER, "word": room.secret_word, "players": service.public_roster(room)}


def start_voting(room: Room) -> dict:
    return {
        "players": service.public_roster(room),
        "requiredVotes": service.required_votes(len(room.players)),
    }


def vote_update(votes: dict[str, str]) -> dict:
    return {"votes": dict(votes)}


def vote_result(outcome: service.VoteOutcome) -> dict:
    room = outcome.room
    if outcome.was_outsider:
        message = f"Outsider caught! {outcome.accused} was an outsider."
    else:
        message = f"{outcome.accused} was NOT an outsider. The outsiders win."
    return {
        "message": message,
        "accused": outcome.accused,
        "wasOutsider": outcome.was_outsider,
        "outsidersLeft": len(room.outsiders),
    }


def game_over(room: Room, message: str | None = None) -> dict:
    payload = {
        "winner": room.winner,
        "secretWord": room.secret_word,
        "outsiders": list(room.outsiders),
    }
    if message:
        payload["message"] = message
    return payload
