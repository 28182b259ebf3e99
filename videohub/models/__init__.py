from videohub.models.user import User
from videohub.models.video import Video, WatchHistoryEntry

__all__ = [
    "User",
    "Video",
    "WatchHistoryEntry",
]
