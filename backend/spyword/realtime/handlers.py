from __future__ import annotations

import logging
from typing import Any, Mapping

from flask import request
from flask_socketio import SocketIO, close_room, emit, join_room, leave_room

from ..game import service
from ..game.errors import GameError, InvalidPayload
from ..utils.ids import generate_room_id, pick_avatar
from . import events
from .scheduler import SocketIOScheduler


log = logging.getLogger(__name__)

ALL_OUTSIDERS_LEFT = "All outsiders have left the game. The insiders win!"


def _payload(data: Any) -> dict:
    return data if isinstance(data, dict) else {}


def _reject(err: GameError) -> dict:
    # Errors only ever go back to the caller.
    emit(events.ERROR, err.to_payload())
    return {"ok": False, "error": err.code}


def register_socketio_handlers(
    socketio: SocketIO,
    settings: Mapping[str, Any],
    scheduler: Any | None = None,
) -> None:
    scheduler = scheduler or SocketIOScheduler(socketio)

    countdown_from = int(settings.get("COUNTDOWN_FROM", 5))
    tick_sec = float(settings.get("COUNTDOWN_TICK_SEC", 1))
    discussion_sec = float(settings.get("DISCUSSION_SEC", 30))
    room_id_length = int(settings.get("ROOM_ID_LENGTH", 6))

    def _fresh_room_id() -> str:
        room_id = generate_room_id(room_id_length)
        while service.room_id_taken(room_id):
            room_id = generate_room_id(room_id_length)
        return room_id

    def _broadcast_membership(room) -> None:
        socketio.emit(events.ROOM_JOINED, events.room_joined(room), to=room.id)

    def _broadcast_vote_outcome(outcome: service.VoteOutcome) -> None:
        room = outcome.room
        if not outcome.resolved:
            return
        socketio.emit(events.VOTE_RESULT, events.vote_result(outcome), to=room.id)
        if outcome.game_over:
            socketio.emit(events.GAME_OVER, events.game_over(room), to=room.id)
        else:
            socketio.emit(events.START_VOTING, events.start_voting(room), to=room.id)

    def _broadcast_leave(result: service.LeaveResult) -> None:
        if result.deleted:
            close_room(result.room_id)
            return

        room = result.room
        _broadcast_membership(room)

        if result.reverted:
            socketio.emit(events.WORDS_COMMITTED, events.words_committed(room), to=room.id)
            return

        if result.vote is not None:
            # Votes by or against the leaver are gone; resend the tally.
            socketio.emit(events.VOTE_UPDATE, events.vote_update(result.vote.votes), to=room.id)
            _broadcast_vote_outcome(result.vote)
            return

        if result.game_over:
            socketio.emit(events.GAME_OVER, events.game_over(room, ALL_OUTSIDERS_LEFT), to=room.id)

    def _countdown_tick(room_id: str, token: str, remaining: int) -> None:
        with service.lock():
            if not service.countdown_active(room_id, token):
                return
            socketio.emit(events.COUNTDOWN, {"n": remaining}, to=room_id)
            if remaining > 0:
                scheduler.call_later(tick_sec, _countdown_tick, room_id, token, remaining - 1)
                return

            room = service.start_game(room_id, token)
            if room is None:
                return
            for player in room.players:
                socketio.emit(events.GAME_START, events.game_start(room, player), to=player.sid)

        scheduler.call_later(discussion_sec, _end_discussion, room_id, token)

    def _end_discussion(room_id: str, token: str) -> None:
        with service.lock():
            room = service.begin_voting(room_id, token)
            if room is None:
                return
            socketio.emit(events.START_VOTING, events.start_voting(room), to=room.id)

    @socketio.on(events.CREATE_ROOM)
    def create_room(data):
        payload = _payload(data)
        requested_id = str(payload.get("roomId") or "").strip()

        with service.lock():
            room_id = requested_id or _fresh_room_id()
            try:
                room = service.create_room(
                    room_id,
                    capacity=payload.get("capacity"),
                    outsider_count=payload.get("outsiderCount"),
                    name=payload.get("name", ""),
                    avatar=pick_avatar(str(payload.get("avatar") or "")),
                    sid=request.sid,
                    limits=settings,
                )
            except GameError as err:
                return _reject(err)

            join_room(room.id)
            emit(events.ROOM_CREATED, events.room_created(room))
            _broadcast_membership(room)
        return {"ok": True, "roomId": room.id}

    @socketio.on(events.JOIN_ROOM)
    def join(data):
        payload = _payload(data)
        room_id = str(payload.get("roomId") or "").strip()
        if not room_id:
            return _reject(InvalidPayload("Room id is required."))

        with service.lock():
            try:
                result = service.join_room(
                    room_id,
                    name=payload.get("name", ""),
                    avatar=pick_avatar(str(payload.get("avatar") or "")),
                    sid=request.sid,
                    limits=settings,
                )
            except GameError as err:
                return _reject(err)

            room = result.room
            join_room(room.id)
            _broadcast_membership(room)
            if result.filled:
                socketio.emit(events.ROOM_FULL, events.room_full(room), to=room.id)
                socketio.emit(events.START_WORD_INPUT, {"roomId": room.id}, to=room.id)
        return {"ok": True}

    @socketio.on(events.SUBMIT_WORDS)
    def submit_words(data):
        payload = _payload(data)
        room_id = str(payload.get("roomId") or "").strip()

        with service.lock():
            try:
                result = service.submit_words(room_id, request.sid, payload.get("words"), limits=settings)
            except GameError as err:
                return _reject(err)

            room = result.room
            if not result.first_submission:
                # Resync the caller only.
                emit(events.WORDS_COMMITTED, events.words_committed(room))
                return {"ok": True}

            socketio.emit(events.WORDS_COMMITTED, events.words_committed(room), to=room.id)
            if result.complete:
                scheduler.call_later(tick_sec, _countdown_tick, room.id, room.game_token, countdown_from)
        return {"ok": True}

    @socketio.on(events.VOTE)
    def vote(data):
        payload = _payload(data)
        room_id = str(payload.get("roomId") or "").strip()

        with service.lock():
            try:
                outcome = service.cast_vote(room_id, request.sid, payload.get("accused"))
            except GameError as err:
                return _reject(err)

            socketio.emit(events.VOTE_UPDATE, events.vote_update(outcome.votes), to=room_id)
            _broadcast_vote_outcome(outcome)
        return {"ok": True}

    @socketio.on(events.LEAVE_ROOM)
    def leave(data):
        payload = _payload(data)
        room_id = str(payload.get("roomId") or "").strip()

        with service.lock():
            try:
                result = service.leave_room(room_id, request.sid)
            except GameError as err:
                return _reject(err)
            leave_room(room_id)
            _broadcast_leave(result)
        return {"ok": True}

    @socketio.on("disconnect")
    def on_disconnect(*_args):
        with service.lock():
            result = service.disconnect(request.sid)
            if result is None:
                return
            log.info("%s disconnected from room %s", result.name, result.room_id)
            _broadcast_leave(result)
