from fastapi import Header

PLAYER_HEADER = "X-Player-ID"

# Local-first default: progress is kept under one player unless the client
# sends its own anonymous id.
LOCAL_PLAYER_ID = "local"


def get_current_player_id(
    x_player_id: str | None = Header(default=None, max_length=64),
) -> str:
    """Resolve the player whose stats a request reads or writes."""
    if x_player_id and x_player_id.strip():
        return x_player_id.strip()
    return LOCAL_PLAYER_ID
