from __future__ import annotations

import logging
import math
import random
import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Mapping

from ..config import Config
from . import errors
from .models import Player, Room, Winner
from .roles import pick_outsider_indices, pick_secret_word


log = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


_lock = RLock()
_rooms: dict[str, Room] = {}
# socket id -> (room id, player name)
_seats: dict[str, tuple[str, str]] = {}


def lock() -> RLock:
    """The lock serialising every room mutation in this process."""
    return _lock


@dataclass
class JoinResult:
    room: Room
    player: Player
    filled: bool = False


@dataclass
class SubmitResult:
    room: Room
    name: str
    first_submission: bool
    complete: bool = False


@dataclass
class VoteOutcome:
    room: Room
    votes: dict[str, str] = field(default_factory=dict)
    resolved: bool = False
    accused: str | None = None
    was_outsider: bool = False
    game_over: bool = False


@dataclass
class LeaveResult:
    room_id: str
    name: str
    room: Room | None
    deleted: bool = False
    reverted: bool = False
    game_over: bool = False
    vote: VoteOutcome | None = None


# ---------------------------------------------------------------- registry


def create_room(
    room_id: str,
    capacity: Any,
    outsider_count: Any,
    name: str,
    avatar: str = "",
    sid: str = "",
    limits: Mapping[str, Any] | None = None,
) -> Room:
    with _lock:
        room_id = (room_id or "").strip()
        if not room_id:
            raise errors.InvalidPayload("Room id is required.")
        name = _validate_name(name, limits)
        capacity = _coerce_count(capacity)
        outsider_count = _coerce_count(outsider_count)

        if outsider_count < 1 or capacity < 2 or outsider_count >= capacity:
            raise errors.InvalidConfiguration()
        max_capacity = _limit(limits, "MAX_CAPACITY")
        if capacity > max_capacity:
            raise errors.InvalidConfiguration(f"A room holds at most {max_capacity} players.")
        if room_id in _rooms:
            raise errors.DuplicateId()
        if sid and sid in _seats:
            raise errors.AlreadyInRoom()

        room = Room(
            id=room_id,
            capacity=capacity,
            outsider_count=outsider_count,
            created_at_ms=now_ms(),
        )
        room.players.append(Player(name=name, avatar=avatar, sid=sid))
        _rooms[room_id] = room
        if sid:
            _seats[sid] = (room_id, name)

        log.info("Room %s created by %s (%d/%d, %d outsiders)", room_id, name, 1, capacity, outsider_count)
        return room


def get_room(room_id: str) -> Room:
    with _lock:
        room = _rooms.get(room_id)
        if room is None:
            raise errors.RoomNotFound()
        return room


def find_room(room_id: str) -> Room | None:
    with _lock:
        return _rooms.get(room_id)


def delete_room(room_id: str) -> bool:
    with _lock:
        if room_id not in _rooms:
            return False
        del _rooms[room_id]
        for sid in [s for s, (rid, _) in _seats.items() if rid == room_id]:
            del _seats[sid]
        log.info("Room %s deleted", room_id)
        return True


def list_rooms() -> list[Room]:
    with _lock:
        return list(_rooms.values())


def clear_rooms() -> None:
    with _lock:
        _rooms.clear()
        _seats.clear()


def seat_of(sid: str) -> tuple[str, str] | None:
    with _lock:
        return _seats.get(sid)


def room_id_taken(room_id: str) -> bool:
    with _lock:
        return room_id in _rooms


# ------------------------------------------------------------- membership


def join_room(
    room_id: str,
    name: str,
    avatar: str = "",
    sid: str = "",
    limits: Mapping[str, Any] | None = None,
) -> JoinResult:
    with _lock:
        room = get_room(room_id)
        if sid and sid in _seats:
            raise errors.AlreadyInRoom()
        name = _validate_name(name, limits)

        if room.is_full:
            raise errors.RoomFull()
        if room.find_player(name) is not None:
            raise errors.NameTaken()
        if room.phase != "waiting":
            raise errors.GameAlreadyStarted()

        player = Player(name=name, avatar=avatar, sid=sid)
        room.players.append(player)
        if sid:
            _seats[sid] = (room.id, name)

        log.info("%s joined room %s (%d/%d)", name, room.id, len(room.players), room.capacity)

        filled = len(room.players) == room.capacity
        if filled:
            room.phase = "word_input"
            log.info("Room %s is full, word input started", room.id)
        return JoinResult(room=room, player=player, filled=filled)


def leave_room(room_id: str, sid: str) -> LeaveResult:
    with _lock:
        room = get_room(room_id)
        seat = _seats.get(sid)
        if seat is None or seat[0] != room.id:
            raise errors.PlayerNotFound("You are not in this room.")
        return _remove_player(room, seat[1], sid)


def disconnect(sid: str) -> LeaveResult | None:
    """Drop whatever seat ``sid`` holds. Safe to call more than once."""
    with _lock:
        seat = _seats.get(sid)
        if seat is None:
            return None
        room_id, name = seat
        room = _rooms.get(room_id)
        if room is None:
            del _seats[sid]
            return None
        return _remove_player(room, name, sid)


def _remove_player(room: Room, name: str, sid: str) -> LeaveResult:
    _seats.pop(sid, None)

    room.players = [p for p in room.players if p.name != name]
    room.committed_players = [n for n in room.committed_players if n != name]
    room.words_by_submitter.pop(name, None)
    room.votes = {v: a for v, a in room.votes.items() if v != name and a != name}

    log.info("%s left room %s (%d/%d)", name, room.id, len(room.players), room.capacity)

    result = LeaveResult(room_id=room.id, name=name, room=room)

    if not room.players:
        delete_room(room.id)
        result.room = None
        result.deleted = True
        return result

    if room.phase == "word_input":
        # The freed seat has to be refilled before the game can start.
        room.phase = "waiting"
        room.word_pool = []
        room.game_token = None
        result.reverted = True
        log.info("Room %s back to waiting after %s left", room.id, name)
        return result

    if room.phase in ("playing", "voting") and name in room.outsiders:
        room.outsiders = [n for n in room.outsiders if n != name]
        if not room.outsiders:
            _finish(room, "insiders")
            result.game_over = True
            return result

    if room.phase == "voting":
        outcome = _resolve_votes(room)
        result.vote = outcome
        result.game_over = outcome.game_over

    return result


# ------------------------------------------------------------------ words


def submit_words(
    room_id: str,
    sid: str,
    words: Any,
    limits: Mapping[str, Any] | None = None,
) -> SubmitResult:
    with _lock:
        room = get_room(room_id)
        name = _seat_name(room, sid)
        if room.phase != "word_input":
            raise errors.WrongPhase("Word submission is not possible right now.")

        if name in room.committed_players:
            return SubmitResult(room=room, name=name, first_submission=False)

        cleaned = _clean_words(words, limits)
        room.words_by_submitter[name] = cleaned
        room.committed_players.append(name)
        log.info(
            "%s submitted %d words in room %s (%d/%d)",
            name,
            len(cleaned),
            room.id,
            len(room.committed_players),
            room.capacity,
        )

        result = SubmitResult(room=room, name=name, first_submission=True)
        if len(room.committed_players) == room.capacity:
            room.word_pool = [w for n in room.committed_players for w in room.words_by_submitter[n]]
            room.game_token = uuid.uuid4().hex
            result.complete = True
            log.info("Room %s: all words in, pool of %d, countdown started", room.id, len(room.word_pool))
        return result


def countdown_active(room_id: str, token: str) -> bool:
    with _lock:
        room = _rooms.get(room_id)
        return room is not None and room.phase == "word_input" and room.game_token == token


# ------------------------------------------------------------------- game


def start_game(room_id: str, token: str, rng: random.Random | None = None) -> Room | None:
    """Assign roles and the secret word. ``None`` if the countdown went stale."""
    with _lock:
        if not countdown_active(room_id, token):
            log.debug("Stale countdown for room %s ignored", room_id)
            return None
        room = _rooms[room_id]

        indices = pick_outsider_indices(len(room.players), room.outsider_count, rng=rng)
        for i, p in enumerate(room.players):
            p.is_outsider = i in indices
        room.outsiders = [room.players[i].name for i in indices]
        room.secret_word = pick_secret_word(room.word_pool, rng=rng)
        room.votes = {}
        room.phase = "playing"

        log.info("Game started in room %s with %d players", room.id, len(room.players))
        log.debug("Room %s secret word %r, outsiders %s", room.id, room.secret_word, room.outsiders)
        return room


def begin_voting(room_id: str, token: str) -> Room | None:
    with _lock:
        room = _rooms.get(room_id)
        if room is None or room.phase != "playing" or room.game_token != token:
            log.debug("Stale discussion timer for room %s ignored", room_id)
            return None
        room.phase = "voting"
        room.votes = {}
        log.info("Voting started in room %s", room.id)
        return room


def required_votes(player_count: int) -> int:
    return math.ceil(player_count / 2)


def cast_vote(room_id: str, sid: str, accused: Any) -> VoteOutcome:
    with _lock:
        room = get_room(room_id)
        voter = _seat_name(room, sid)
        if room.phase != "voting":
            raise errors.WrongPhase("Voting is not possible right now.")
        if not isinstance(accused, str) or room.find_player(accused) is None:
            raise errors.PlayerNotFound("That player is not in this room.")

        room.votes[voter] = accused
        return _resolve_votes(room)


def _resolve_votes(room: Room) -> VoteOutcome:
    outcome = VoteOutcome(room=room, votes=dict(room.votes))
    required = required_votes(len(room.players))
    if not room.votes or len(room.votes) < required:
        return outcome

    ranked = Counter(room.votes.values()).most_common(2)
    accused, count = ranked[0]
    if count < required:
        return outcome
    if len(ranked) > 1 and ranked[1][1] == count:
        # Tied at the top: wait until someone changes their vote.
        return outcome

    outcome.resolved = True
    outcome.accused = accused

    if accused in room.outsiders:
        outcome.was_outsider = True
        room.outsiders = [n for n in room.outsiders if n != accused]
        eliminated = room.find_player(accused)
        room.players = [p for p in room.players if p.name != accused]
        if eliminated is not None:
            _seats.pop(eliminated.sid, None)
        log.info("Room %s: outsider %s caught, %d left", room.id, accused, len(room.outsiders))

        room.votes = {}
        if not room.outsiders:
            _finish(room, "insiders")
            outcome.game_over = True
        return outcome

    log.info("Room %s: %s was not an outsider", room.id, accused)
    _finish(room, "outsiders")
    outcome.game_over = True
    return outcome


def _finish(room: Room, winner: Winner) -> None:
    room.phase = "game_over"
    room.winner = winner
    room.votes = {}
    room.game_token = None
    log.info("Game over in room %s, %s win", room.id, winner)


# --------------------------------------------------------------- payloads


def public_roster(room: Room) -> list[dict]:
    # Never expose roles here.
    return [{"name": p.name, "avatar": p.avatar} for p in room.players]


def room_public_state(room: Room) -> dict:
    with _lock:
        payload = {
            "roomId": room.id,
            "phase": room.phase,
            "capacity": room.capacity,
            "outsiderCount": room.outsider_count,
            "currentCount": len(room.players),
            "players": public_roster(room),
            "committedPlayers": list(room.committed_players),
        }
        if room.phase == "voting":
            payload["votes"] = dict(room.votes)
            payload["requiredVotes"] = required_votes(len(room.players))
        if room.phase == "game_over":
            payload["winner"] = room.winner
            payload["secretWord"] = room.secret_word
            payload["outsiders"] = list(room.outsiders)
        return payload


# ---------------------------------------------------------------- helpers


def _seat_name(room: Room, sid: str) -> str:
    seat = _seats.get(sid)
    if seat is None or seat[0] != room.id:
        raise errors.PlayerNotFound("You are not in this room.")
    return seat[1]


def _limit(limits: Mapping[str, Any] | None, key: str) -> int:
    # App settings win over the environment defaults.
    if limits is not None and key in limits:
        return int(limits[key])
    return int(getattr(Config, key))


def _validate_name(name: Any, limits: Mapping[str, Any] | None = None) -> str:
    n = (name or "").strip() if isinstance(name, str) else ""
    if not n:
        raise errors.InvalidPayload("Name is required.")
    max_length = _limit(limits, "MAX_NAME_LENGTH")
    if len(n) > max_length:
        raise errors.InvalidPayload(f"Name must be at most {max_length} characters.")
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        raise errors.InvalidPayload("Name contains invalid characters.")
    for ch in n:
        if ord(ch) < 32:
            raise errors.InvalidPayload("Name contains invalid characters.")
    return n


def _coerce_count(raw: Any) -> int:
    if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
        raise errors.InvalidConfiguration("Room size and outsider count must be whole numbers.")
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        raise errors.InvalidConfiguration("Room size and outsider count must be whole numbers.") from None


def _clean_words(words: Any, limits: Mapping[str, Any] | None = None) -> list[str]:
    if not isinstance(words, list):
        raise errors.InvalidPayload("Words must be a list.")
    cleaned = [w.strip() for w in words if isinstance(w, str) and w.strip()]
    if not cleaned:
        raise errors.InvalidPayload("Submit at least one word.")
    max_words = _limit(limits, "MAX_WORDS_PER_PLAYER")
    if len(cleaned) > max_words:
        raise errors.InvalidPayload(f"Submit at most {max_words} words.")
    max_length = _limit(limits, "MAX_WORD_LENGTH")
    if any(len(w) > max_length for w in cleaned):
        raise errors.InvalidPayload(f"Words must be at most {max_length} characters.")
    return cleaned
