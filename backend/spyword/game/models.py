from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


Phase = Literal["waiting", "word_input", "playing", "voting", "game_over"]
Winner = Literal["insiders", "outsiders"]


@dataclass
class Player:
    name: str
    avatar: str = ""
    sid: str = ""
    is_outsider: bool = False


@dataclass
class Room:
    id: str
    capacity: int
    outsider_count: int
    phase: Phase = "waiting"
    players: list[Player] = field(default_factory=list)
    words_by_submitter: dict[str, list[str]] = field(default_factory=dict)
    committed_players: list[str] = field(default_factory=list)
    word_pool: list[str] = field(default_factory=list)
    secret_word: str | None = None
    # Insertion order follows the role draw.
    outsiders: list[str] = field(default_factory=list)
    votes: dict[str, str] = field(default_factory=dict)
    game_token: str | None = None
    winner: Winner | None = None
    created_at_ms: int = 0

    def find_player(self, name: str) -> Player | None:
        for p in self.players:
            if p.name == name:
                return p
        return None

    def player_names(self) -> list[str]:
        return [p.name for p in self.players]

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.capacity
