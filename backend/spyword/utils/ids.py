from __future__ import annotations

import random
import secrets
import string

# Ambiguous glyphs (0/O, 1/I/L) are left out so ids can be read aloud.
ROOM_ID_ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "0O1IL")

AVATARS = (
    "🦊", "🐼", "🐸", "🐙", "🦉", "🐢", "🦁", "🐧",
    "🐝", "🦄", "🐳", "🦔", "🐨", "🐯", "🦜", "🐞",
)


def generate_room_id(length: int = 6) -> str:
    return "".join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(length))


def pick_avatar(preferred: str = "") -> str:
    """Keep a short client-chosen avatar, otherwise pick one at random."""
    a = (preferred or "").strip()
    if a and len(a) <= 8 and "<" not in a and ">" not in a:
        return a
    return random.choice(AVATARS)
