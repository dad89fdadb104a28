"""WebDAV 媒体库扫描器包。"""

from .config import LibraryPath, ServerConfig
from .exceptions import ClassificationMiss, ParseError, ProtocolError, TransportError
from .filters import VideoFilter
from .multistatus import parse_multistatus
from .parsing import parse_episode_filename, parse_movie_filename
from .scanner import MediaScanner
from .webdav import WebDAVClient, WebDAVTransport

__all__ = [
    "ClassificationMiss",
    "LibraryPath",
    "MediaScanner",
    "ParseError",
    "ProtocolError",
    "ServerConfig",
    "TransportError",
    "VideoFilter",
    "WebDAVClient",
    "WebDAVTransport",
    "parse_episode_filename",
    "parse_movie_filename",
    "parse_multistatus",
]
