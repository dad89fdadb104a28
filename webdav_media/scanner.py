"""媒体库扫描主逻辑：把 WebDAV 目录树整理成电影、剧集、季与单集。"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .config import LibraryPath, ServerConfig
from .exceptions import ClassificationMiss, ParseError, ProtocolError, TransportError
from .ids import decode_item_id, encode_item_id, path_id, synthetic_season_id
from .models import (
    ConnectionReport,
    DirectoryEntry,
    EpisodeRecord,
    Library,
    MediaSource,
    MovieRecord,
    SeasonRecord,
    SeriesRecord,
)
from .parsing import (
    parse_episode_filename,
    parse_movie_filename,
    season_from_folder,
    split_year_suffix,
)
from .webdav import WebDAVClient

UNCATEGORIZED = "Uncategorized"

StreamUrlBuilder = Callable[[str, str], str]


def proxy_stream_url_builder(proxy_base_url: str) -> StreamUrlBuilder:
    """默认的代理播放地址：{proxy_base}/webdav-media/{integration_id}/{item_id}。"""

    def _build(integration_id: str, item_id: str) -> str:
        return f"{proxy_base_url.rstrip('/')}/webdav-media/{integration_id}/{item_id}"

    return _build


@dataclass
class MediaScanner:
    """负责 orchestrate WebDAV 媒体扫描流程。

    每次调用都从远端重新计算，不保留任何缓存，因此同一配置下的多个调用可以并发执行。
    """

    config: ServerConfig
    client: WebDAVClient
    # 未注入时使用 proxy_stream_url_builder(config.proxy_base_url)
    stream_url_builder: Optional[StreamUrlBuilder] = None

    # ------------------------------------------------------------------
    # 连接测试
    # ------------------------------------------------------------------
    def test_connection(self) -> ConnectionReport:
        """逐个检查配置的路径；只要有一个可访问就算成功，其余错误汇总进消息。"""

        paths = self.config.local_media_paths
        if not paths:
            return ConnectionReport(
                success=False,
                message="No media paths configured. Please add at least one WebDAV library path.",
            )

        valid_paths = 0
        total_files = 0
        errors: List[str] = []

        for library in paths:
            try:
                self.client.propfind(library.path, depth=1)
            except ProtocolError as exc:
                errors.append(f"Path not accessible: {library.path} (HTTP {exc.status})")
                logging.warning("媒体库路径不可访问：%s (HTTP %s)", library.path, exc.status)
                continue
            except TransportError as exc:
                errors.append(f"Path error: {library.path} - {exc}")
                logging.warning("媒体库路径出错：%s -> %s", library.path, exc)
                continue
            except ParseError as exc:
                # 状态码正常即视为可达，文件数由下面的扫描降级为 0
                logging.warning("媒体库路径可达，但响应无法解析：%s -> %s", library.path, exc)

            valid_paths += 1
            total_files += len(
                self.client.scan_video_files(library.path, self.config.scan_recursive)
            )

        if valid_paths == 0:
            return ConnectionReport(
                success=False,
                message="No valid paths found. " + " ".join(errors),
            )

        message = f"Found {valid_paths} valid path(s) with {total_files} video file(s)"
        if errors:
            message += ". Warnings: " + "; ".join(errors)

        logging.info("WebDAV 连接测试完成：%s", message)
        return ConnectionReport(
            success=True,
            message=message,
            paths_found=valid_paths,
            total_files=total_files,
        )

    def refresh_library(self) -> ConnectionReport:
        report = self.test_connection()
        if report.success:
            report.message = "WebDAV media paths rescanned successfully. " + report.message
        else:
            report.message = "Failed to rescan: " + report.message
        return report

    # ------------------------------------------------------------------
    # 媒体库与电影
    # ------------------------------------------------------------------
    def fetch_libraries(self) -> List[Library]:
        libraries: List[Library] = []
        for library in self.config.local_media_paths:
            files = self.client.scan_video_files(library.path, self.config.scan_recursive)
            libraries.append(
                Library(
                    id=path_id(library.path),
                    name=library.name,
                    type=library.type,
                    item_count=len(files),
                    path=library.path,
                )
            )
        return libraries

    def fetch_movies(self) -> List[MovieRecord]:
        movies: List[MovieRecord] = []
        for library in self.config.paths_for_type("movies"):
            files = self.client.scan_video_files(library.path, self.config.scan_recursive)
            genres = self._library_genres(library)
            for file in files:
                movies.append(self._build_movie(file, genres))
            logging.debug("电影库 %s 扫描完成，共 %s 个文件。", library.path, len(files))
        return movies

    def _build_movie(self, file: DirectoryEntry, genres: List[str]) -> MovieRecord:
        parsed = parse_movie_filename(file.name)
        return MovieRecord(
            id=encode_item_id(file.path),
            title=parsed.title,
            original_title=parsed.title,
            production_year=parsed.year,
            path=file.path,
            container=parsed.container,
            genres=list(genres),
            media_sources=[MediaSource(container=parsed.container, path=file.path, size=file.size)],
        )

    # ------------------------------------------------------------------
    # 剧集 / 季 / 单集
    # ------------------------------------------------------------------
    def fetch_series(self) -> List[SeriesRecord]:
        series_map: Dict[str, SeriesRecord] = {}
        for library in self.config.paths_for_type("tvshows"):
            found = self._scan_series_directory(library.path, self._library_genres(library))
            for series_id, record in found.items():
                # 同一目录重复出现时保留第一次看到的记录
                series_map.setdefault(series_id, record)
        return list(series_map.values())

    def _scan_series_directory(self, base_path: str, genres: List[str]) -> Dict[str, SeriesRecord]:
        found: Dict[str, SeriesRecord] = {}
        for entry in self.client.list_directory(base_path):
            if not entry.is_dir:
                continue
            series_id = path_id(entry.path)
            if series_id in found:
                continue
            name, year = split_year_suffix(entry.name)
            found[series_id] = SeriesRecord(
                id=series_id,
                name=name,
                path=entry.path,
                production_year=year,
                genres=list(genres),
            )
        return found

    def _find_series_path(self, series_id: str) -> Optional[str]:
        for library in self.config.paths_for_type("tvshows"):
            for entry in self.client.list_directory(library.path):
                if entry.is_dir and path_id(entry.path) == series_id:
                    return entry.path
        return None

    def fetch_seasons(self, series_id: str) -> List[SeasonRecord]:
        series_path = self._find_series_path(series_id)
        if series_path is None:
            logging.info("未找到剧集：%s", series_id)
            return []
        return self._scan_seasons(series_path)

    def _scan_seasons(self, series_path: str) -> List[SeasonRecord]:
        seasons: List[SeasonRecord] = []
        for entry in self.client.list_directory(series_path):
            if not entry.is_dir:
                continue
            season_num = season_from_folder(entry.name)
            if season_num is None:
                continue
            if season_num < 1:
                logging.debug("忽略第 0 季目录：%s", entry.path)
                continue
            episode_files = self.client.scan_video_files(entry.path, recursive=False)
            seasons.append(
                SeasonRecord(
                    id=path_id(entry.path),
                    name=f"Season {season_num}",
                    index_number=season_num,
                    path=entry.path,
                    episode_count=len(episode_files),
                )
            )

        if not seasons:
            direct_episodes = self.client.scan_video_files(series_path, recursive=False)
            if direct_episodes:
                seasons.append(
                    SeasonRecord(
                        id=synthetic_season_id(series_path),
                        name="Season 1",
                        index_number=1,
                        path=series_path,
                        episode_count=len(direct_episodes),
                    )
                )

        return sorted(seasons, key=lambda season: season.index_number)

    def _resolve_season_path(self, series_path: str, season_id: str) -> Optional[str]:
        # 不维护 ID -> 路径的映射，重新计算季列表后按 ID 查找
        for season in self._scan_seasons(series_path):
            if season.id == season_id:
                return season.path
        return None

    def fetch_episodes(self, series_id: str, season_id: Optional[str] = None) -> List[EpisodeRecord]:
        series_path = self._find_series_path(series_id)
        if series_path is None:
            logging.info("未找到剧集：%s", series_id)
            return []

        series_name = posixpath.basename(series_path)
        season_path = None
        if season_id is not None:
            season_path = self._resolve_season_path(series_path, season_id)
            if season_path is None:
                logging.debug("未找到季 %s，改为扫描整个剧集目录：%s", season_id, series_path)

        if season_path is not None:
            files = self.client.scan_video_files(season_path, recursive=False)
        else:
            files = self.client.scan_video_files(series_path, recursive=True)
        return list(self._build_episodes(files, series_name))

    def _build_episodes(self, files: Iterable[DirectoryEntry], series_name: str) -> Iterable[EpisodeRecord]:
        for file in files:
            parent_dir = posixpath.basename(posixpath.dirname(file.path))
            try:
                parsed = parse_episode_filename(file.name, series_name, parent_dir)
            except ClassificationMiss:
                logging.debug("无法识别集数，跳过文件：%s", file.path)
                continue
            yield EpisodeRecord(
                id=encode_item_id(file.path),
                series_name=parsed.show,
                name=parsed.title,
                index_number=parsed.episode,
                parent_index_number=parsed.season,
                path=file.path,
                container=parsed.container,
                media_sources=[MediaSource(container=parsed.container, path=file.path, size=file.size)],
            )

    # ------------------------------------------------------------------
    # 类型、播放地址与凭据
    # ------------------------------------------------------------------
    def extract_genres(self, genres: Iterable[str]) -> List[str]:
        """按 genre_handling 处理类型：primary 只保留第一个，all 保留全部。"""

        cleaned = [genre.strip() for genre in genres if genre and genre.strip()]
        if not cleaned:
            return [UNCATEGORIZED]
        if self.config.genre_handling == "primary":
            return cleaned[:1]
        return cleaned

    def _library_genres(self, library: LibraryPath) -> List[str]:
        # 媒体库的显示名即作为该库下条目的类型
        return self.extract_genres([library.name])

    def get_stream_url(self, item_id: str) -> str:
        builder = self.stream_url_builder or proxy_stream_url_builder(self.config.proxy_base_url)
        return builder(self.config.integration_id, item_id)

    def get_direct_stream_url(self, item_id: str) -> str:
        return self.get_stream_url(item_id)

    def resolve_item_path(self, item_id: str) -> str:
        return decode_item_id(item_id)

    def get_file_url(self, path: str) -> str:
        return self.client.join_url(path)

    def get_credentials(self) -> Dict[str, Optional[str]]:
        return {
            "username": self.config.webdav_username or None,
            "password": self.config.webdav_password or None,
        }
