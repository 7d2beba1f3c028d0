from __future__ import annotations

import random
from typing import Sequence


def pick_outsider_indices(player_count: int, outsider_count: int, rng: random.Random | None = None) -> list[int]:
    """Draw ``outsider_count`` distinct seat indices by rejection sampling.

    Indices are returned in draw order.
    """
    if outsider_count < 0 or outsider_count > player_count:
        raise ValueError(f"cannot pick {outsider_count} outsiders from {player_count} players")

    r = rng or random
    picked: list[int] = []
    while len(picked) < outsider_count:
        idx = r.randrange(player_count)
        if idx not in picked:
            picked.append(idx)
    return picked


def pick_secret_word(pool: Sequence[str], rng: random.Random | None = None) -> str:
    if not pool:
        raise ValueError("word pool is empty")
    r = rng or random
    return pool[r.randrange(len(pool))]
