from .session import ChannelMode, SessionMode, SolverState
from .video import VideoHost, VideoPost, VideoQuality, VideoStreamInfo

__all__ = [
    "ChannelMode",
    "SessionMode",
    "SolverState",
    "VideoHost",
    "VideoPost",
    "VideoQuality",
    "VideoStreamInfo",
]
