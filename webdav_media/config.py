"""配置加载模块。"""

from __future__ import annotations

import json
import logging
import os
import posixpath
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

MEDIA_KINDS = ("movies", "tvshows")
GENRE_HANDLING_MODES = ("primary", "all")

DEFAULT_VIDEO_EXTENSIONS = [
    "mp4", "mkv", "avi", "mov", "wmv", "flv", "webm",
    "m4v", "mpeg", "mpg", "ts", "m2ts", "mts", "vob",
]

DEFAULT_TIMEOUT = 30


def normalize_path(path: str) -> str:
    path = path.strip()
    if not path:
        return ""
    if not path.startswith("/"):
        path = f"/{path}"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() == "true"


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _normalize_extensions(exts: Iterable[str]) -> List[str]:
    normalized: List[str] = []
    for ext in exts:
        cleaned = str(ext).strip().lower().lstrip(".")
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


@dataclass
class LibraryPath:
    """一个媒体库路径：显示名、WebDAV 路径与媒体类型。"""

    name: str
    path: str
    type: str = "movies"

    def __post_init__(self) -> None:
        self.path = normalize_path(self.path)
        if not self.path:
            raise ValueError("媒体库路径不能为空")
        if self.type not in MEDIA_KINDS:
            raise ValueError(f"媒体库类型必须是 {MEDIA_KINDS} 之一，收到：{self.type!r}")
        self.name = (self.name or "").strip()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], index: int = 0) -> "LibraryPath":
        path = str(data.get("path") or "")
        name = data.get("name") or posixpath.basename(normalize_path(path)) or f"Library {index}"
        return cls(name=str(name), path=path, type=str(data.get("type") or "movies"))


@dataclass
class ServerConfig:
    """WebDAV 服务端连接与扫描参数。"""

    host: str
    port: Optional[int] = None
    ssl: bool = False
    webdav_username: str = ""
    webdav_password: str = ""
    local_media_paths: List[LibraryPath] = field(default_factory=list)
    scan_recursive: bool = True
    genre_handling: str = "primary"
    video_extensions: Optional[List[str]] = None
    timeout: int = DEFAULT_TIMEOUT
    integration_id: str = ""
    proxy_base_url: str = ""
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.genre_handling not in GENRE_HANDLING_MODES:
            raise ValueError(
                f"genre_handling 必须是 {GENRE_HANDLING_MODES} 之一，收到：{self.genre_handling!r}"
            )
        if isinstance(self.video_extensions, str):
            # 表单里常见的 "mkv, mp4" 写法
            self.video_extensions = self.video_extensions.split(",")
        if self.video_extensions is not None:
            if not isinstance(self.video_extensions, (list, tuple)):
                raise ValueError(f"video_extensions 需要是字符串数组，收到：{self.video_extensions!r}")
            self.video_extensions = _normalize_extensions(self.video_extensions)

    @property
    def base_url(self) -> str:
        protocol = "https" if self.ssl else "http"
        url = f"{protocol}://{self.host}"
        # 标准端口不写入 URL
        if self.port and self.port not in (80, 443):
            url += f":{self.port}"
        return url

    @property
    def auth(self) -> Optional[tuple]:
        if self.webdav_username or self.webdav_password:
            return (self.webdav_username, self.webdav_password)
        return None

    def get_video_extensions(self) -> List[str]:
        if self.video_extensions:
            return list(self.video_extensions)
        return list(DEFAULT_VIDEO_EXTENSIONS)

    def paths_for_type(self, media_kind: str) -> List[LibraryPath]:
        return [item for item in self.local_media_paths if item.type == media_kind]

    @staticmethod
    def parse_library_paths(raw: Any) -> List[LibraryPath]:
        """把外部传入的松散路径配置校验为 LibraryPath 列表，空路径直接忽略。"""

        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ValueError("媒体库配置需要是列表，例如 [{'name': 'Movies', 'path': '/movies', 'type': 'movies'}]")
        libraries: List[LibraryPath] = []
        for index, item in enumerate(raw):
            if isinstance(item, LibraryPath):
                libraries.append(item)
                continue
            if not isinstance(item, Mapping):
                raise ValueError(f"第 {index} 个媒体库配置不是对象：{item!r}")
            if not str(item.get("path") or "").strip():
                logging.debug("忽略未填写路径的媒体库配置：%s", item)
                continue
            libraries.append(LibraryPath.from_mapping(item, index))
        return libraries

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "ServerConfig":
        """从集成记录（字典）构建配置。"""

        host = str(record.get("host") or "").strip()
        if not host:
            raise ValueError("host 不能为空")

        port = record.get("port")
        try:
            port = int(port) if port not in (None, "") else None
        except (TypeError, ValueError) as exc:
            raise ValueError("port 必须是整数") from exc

        timeout = record.get("timeout")
        try:
            timeout = int(timeout) if timeout not in (None, "") else DEFAULT_TIMEOUT
        except (TypeError, ValueError) as exc:
            raise ValueError("timeout 必须是整数秒数") from exc

        return cls(
            host=host,
            port=port,
            ssl=_as_bool(record.get("ssl", False)),
            webdav_username=record.get("webdav_username") or "",
            webdav_password=record.get("webdav_password") or "",
            local_media_paths=cls.parse_library_paths(record.get("local_media_paths")),
            scan_recursive=_as_bool(record.get("scan_recursive", True)),
            genre_handling=record.get("genre_handling") or "primary",
            video_extensions=record.get("video_extensions") or None,
            timeout=timeout,
            integration_id=str(record.get("integration_id") or record.get("id") or ""),
            proxy_base_url=record.get("proxy_base_url") or "",
            log_level=record.get("log_level") or "INFO",
        )

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """根据环境变量读取配置。"""

        env_file = os.getenv("WEBDAV_ENV_FILE", ".env")
        cls._load_dotenv(env_file)

        defaults = {
            "WEBDAV_HOST": "127.0.0.1",
            "WEBDAV_PORT": "5005",
            "WEBDAV_SSL": "false",
            "WEBDAV_USER": "",
            "WEBDAV_PASS": "",
            "WEBDAV_LIBRARIES": '[{"name": "Movies", "path": "/movies", "type": "movies"}, '
            '{"name": "TV Shows", "path": "/tvshows", "type": "tvshows"}]',
            "WEBDAV_SCAN_RECURSIVE": "true",
            "WEBDAV_GENRE_HANDLING": "primary",
            "WEBDAV_VIDEO_EXTS": "",
            "WEBDAV_TIMEOUT": str(DEFAULT_TIMEOUT),
            "WEBDAV_INTEGRATION_ID": "",
            "WEBDAV_PROXY_BASE": "",
            "LOG_LEVEL": "INFO",
        }

        # 媒体库列表采用 JSON 字符串配置
        try:
            raw_libraries = json.loads(os.getenv("WEBDAV_LIBRARIES", defaults["WEBDAV_LIBRARIES"]))
        except json.JSONDecodeError as exc:
            raise ValueError("WEBDAV_LIBRARIES 必须为 JSON 列表字符串") from exc

        video_exts: Optional[List[str]] = None
        raw_exts = os.getenv("WEBDAV_VIDEO_EXTS", defaults["WEBDAV_VIDEO_EXTS"])
        if raw_exts.strip():
            try:
                video_exts = json.loads(raw_exts)
            except json.JSONDecodeError as exc:
                raise ValueError("WEBDAV_VIDEO_EXTS 必须为 JSON 列表字符串，例如 [\"mkv\", \"mp4\"]") from exc
            if not isinstance(video_exts, list) or not all(isinstance(item, str) for item in video_exts):
                raise ValueError("WEBDAV_VIDEO_EXTS 需要是字符串数组")

        try:
            port = int(os.getenv("WEBDAV_PORT", defaults["WEBDAV_PORT"]))
        except ValueError as exc:
            raise ValueError("WEBDAV_PORT 必须是整数") from exc
        try:
            timeout = int(os.getenv("WEBDAV_TIMEOUT", defaults["WEBDAV_TIMEOUT"]))
        except ValueError as exc:
            raise ValueError("WEBDAV_TIMEOUT 必须是整数秒数") from exc

        config = cls(
            host=os.getenv("WEBDAV_HOST", defaults["WEBDAV_HOST"]),
            port=port,
            ssl=_env_bool("WEBDAV_SSL", False),
            webdav_username=os.getenv("WEBDAV_USER", defaults["WEBDAV_USER"]),
            webdav_password=os.getenv("WEBDAV_PASS", defaults["WEBDAV_PASS"]),
            local_media_paths=cls.parse_library_paths(raw_libraries),
            scan_recursive=_env_bool("WEBDAV_SCAN_RECURSIVE", True),
            genre_handling=os.getenv("WEBDAV_GENRE_HANDLING", defaults["WEBDAV_GENRE_HANDLING"]),
            video_extensions=video_exts,
            timeout=timeout,
            integration_id=os.getenv("WEBDAV_INTEGRATION_ID", defaults["WEBDAV_INTEGRATION_ID"]),
            proxy_base_url=os.getenv("WEBDAV_PROXY_BASE", defaults["WEBDAV_PROXY_BASE"]),
            log_level=os.getenv("LOG_LEVEL", defaults["LOG_LEVEL"]),
        )

        # 在此初始化基础日志配置，方便 CLI 或其他入口复用
        logging.basicConfig(
            level=getattr(logging, config.log_level.upper(), logging.INFO),
            format="[%(asctime)s] %(levelname)s: %(message)s",
        )

        return config

    @staticmethod
    def _load_dotenv(file_path: str) -> None:
        if not file_path or not os.path.exists(file_path):
            return
        try:
            with open(file_path, "r", encoding="utf-8") as fp:
                for line in fp:
                    stripped = line.strip()
                    if not stripped or stripped.startswith("#"):
                        continue
                    if "=" not in stripped:
                        continue
                    key, value = stripped.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip('"').strip("'")
                    if not key:
                        continue
                    # 若环境变量已存在，优先保留外部传入的值
                    os.environ.setdefault(key, value)
        except OSError as exc:
            logging.warning("读取 %s 失败，沿用默认配置：%s", file_path, exc)
