"""领域模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class DirectoryEntry:
    """表示一次 PROPFIND 返回的子资源（已剔除目录自身）。"""

    name: str
    path: str
    raw_href: str
    is_dir: bool
    size: Optional[int] = None

    @property
    def extension(self) -> str:
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[-1].lower()


@dataclass
class MediaSource:
    container: str
    path: str
    size: Optional[int]

    def to_dict(self) -> dict:
        return {"container": self.container, "path": self.path, "size": self.size}


@dataclass
class Library:
    """配置中的一个媒体库路径。"""

    id: str
    name: str
    type: str
    item_count: int
    path: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "item_count": self.item_count,
            "path": self.path,
        }


@dataclass
class MovieRecord:
    """从文件名推断出的电影。"""

    id: str
    title: str
    original_title: str
    production_year: Optional[int]
    path: str
    container: str
    genres: List[str]
    media_sources: List[MediaSource] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "original_title": self.original_title,
            "production_year": self.production_year,
            "path": self.path,
            "container": self.container,
            "genres": list(self.genres),
            "media_sources": [source.to_dict() for source in self.media_sources],
        }


@dataclass
class SeriesRecord:
    """一个剧集目录。"""

    id: str
    name: str
    path: str
    production_year: Optional[int]
    genres: List[str]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "production_year": self.production_year,
            "genres": list(self.genres),
        }


@dataclass
class SeasonRecord:
    id: str
    name: str
    index_number: int
    path: str
    episode_count: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "index_number": self.index_number,
            "path": self.path,
            "episode_count": self.episode_count,
        }


@dataclass
class EpisodeRecord:
    """匹配到的单集文件。"""

    id: str
    series_name: str
    name: str
    index_number: int
    parent_index_number: int
    path: str
    container: str
    media_sources: List[MediaSource] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "series_name": self.series_name,
            "name": self.name,
            "index_number": self.index_number,
            "parent_index_number": self.parent_index_number,
            "path": self.path,
            "container": self.container,
            "media_sources": [source.to_dict() for source in self.media_sources],
        }


@dataclass
class ConnectionReport:
    """连接测试结果。"""

    success: bool
    message: str
    paths_found: Optional[int] = None
    total_files: Optional[int] = None

    def to_dict(self) -> dict:
        data = {"success": self.success, "message": self.message}
        # 仅在成功时附加统计字段，保持对外兼容
        if self.paths_found is not None:
            data["paths_found"] = self.paths_found
        if self.total_files is not None:
            data["total_files"] = self.total_files
        return data
