import random
import string
import time

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_message_id() -> str:
    """Purpose: Produce a collision-resistant id for a UI message.
    Inputs/Outputs: No inputs; returns "msg-<epoch ms>-<9 base36 chars>".
    Side Effects / State: Reads the clock and the random module.
    Dependencies: Used by ConversationStore for every displayed message.
    Failure Modes: None; not cryptographically strong and not meant to be.
    If Removed: The UI cannot key messages for rendering.
    Testing Notes: Generate many ids and ensure they are unique and well-formed.
    """
    # Millisecond timestamp plus a random base36 suffix.
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"msg-{int(time.time() * 1000)}-{suffix}"


def clip_text(text: str, limit: int, marker: str = "...") -> str:
    """Cut text to its first `limit` characters and append the marker; "" stays ""."""
    if not text:
        return ""
    return text[:limit] + marker
