"""从文件名与目录名推断电影、剧集信息。

规则按顺序逐条尝试，命中第一条即停止。很多真实文件名会同时满足多条规则，
但期望的捕获结果不同，因此不要把它们合并成一条正则，也不要调整顺序。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .exceptions import ClassificationMiss

MOVIE_PATTERNS = [
    # Title (2024) [1080p].mkv
    re.compile(r"^(?P<title>.+?)\s*\((?P<year>\d{4})\)\s*(?:\[.*?\])?\s*\.(?P<ext>\w+)$", re.IGNORECASE),
    # Title.2024.1080p.BluRay.mkv
    re.compile(r"^(?P<title>.+?)\.(?P<year>(?:19|20)\d{2})\..*\.(?P<ext>\w+)$", re.IGNORECASE),
    # Title.2024.mkv
    re.compile(r"^(?P<title>.+?)\.(?P<year>(?:19|20)\d{2})\.(?P<ext>\w+)$", re.IGNORECASE),
    # Title 2024.mkv
    re.compile(r"^(?P<title>.+?)\s+(?P<year>(?:19|20)\d{2})\s*\.(?P<ext>\w+)$", re.IGNORECASE),
    # Title.mkv
    re.compile(r"^(?P<title>.+?)\.(?P<ext>\w+)$", re.IGNORECASE),
]

EPISODE_PATTERNS = [
    # Show S01E05 - Title.mkv
    re.compile(
        r"^(?P<show>.+?)\s*[Ss](?P<season>\d{1,2})[Ee](?P<episode>\d{1,2})"
        r"(?:\s*-\s*(?P<title>.+?))?\.(?P<ext>\w+)$",
        re.IGNORECASE,
    ),
    # Show.S01E05.Title.mkv
    re.compile(
        r"^(?P<show>.+?)[.\s]+[Ss](?P<season>\d{1,2})[Ee](?P<episode>\d{1,2})"
        r"[.\s]*(?P<title>.+?)?\.(?P<ext>\w+)$",
        re.IGNORECASE,
    ),
    # Show 1x05 - Title.mkv
    re.compile(
        r"^(?P<show>.+?)\s*(?P<season>\d{1,2})x(?P<episode>\d{1,2})"
        r"(?:\s*-?\s*(?P<title>.+?))?\.(?P<ext>\w+)$",
        re.IGNORECASE,
    ),
    # S01E05 - Title.mkv
    re.compile(
        r"^[Ss](?P<season>\d{1,2})[Ee](?P<episode>\d{1,2})(?:\s*-\s*(?P<title>.+?))?\.(?P<ext>\w+)$",
        re.IGNORECASE,
    ),
    # 05 - Title.mkv
    re.compile(r"^(?P<episode>\d{1,2})\s*[-.]?\s*(?P<title>.+?)?\.(?P<ext>\w+)$", re.IGNORECASE),
]

SEASON_FOLDER_PATTERN = re.compile(r"[Ss](?:eason)?\s*(\d{1,2})", re.IGNORECASE)
YEAR_SUFFIX_PATTERN = re.compile(r"\((\d{4})\)")

_DELIMITERS = re.compile(r"[._]+")
_QUALITY_TOKENS = re.compile(
    r"\b(1080p|720p|480p|2160p|4k|hdr|bluray|webrip|webdl|dvdrip|hdtv)\b", re.IGNORECASE
)
_SPACES = re.compile(r"\s{2,}")


@dataclass
class ParsedMovie:
    title: str
    year: Optional[int]
    container: str


@dataclass
class ParsedEpisode:
    show: str
    season: int
    episode: int
    title: str
    container: str


def normalize_delimiters(text: str) -> str:
    """把 . 和 _ 连续段替换为单个空格并去掉首尾空白。"""

    return _DELIMITERS.sub(" ", text).strip()


def split_extension(filename: str) -> tuple:
    if "." not in filename:
        return filename, ""
    stem, ext = filename.rsplit(".", 1)
    return stem, ext.lower()


def clean_movie_title(title: str) -> str:
    title = _DELIMITERS.sub(" ", title)
    title = _QUALITY_TOKENS.sub("", title)
    return _SPACES.sub(" ", title).strip()


def season_from_folder(folder_name: str) -> Optional[int]:
    """从 "Season 2" / "S02" 一类的目录名中取季号。"""

    match = SEASON_FOLDER_PATTERN.search(folder_name)
    if not match:
        return None
    return int(match.group(1))


def split_year_suffix(folder_name: str) -> tuple:
    """剧集目录名 "Show.Name (2019)" -> ("Show Name", 2019)。"""

    name = normalize_delimiters(folder_name)
    match = YEAR_SUFFIX_PATTERN.search(folder_name)
    if not match:
        return name, None
    name = _SPACES.sub(" ", re.sub(r"\s*\(\d{4}\)\s*", " ", name)).strip()
    return name, int(match.group(1))


def parse_movie_filename(filename: str) -> ParsedMovie:
    """解析电影文件名，最后一条规则兜底，因此总能得到标题。"""

    stem, container = split_extension(filename)
    title: Optional[str] = None
    year: Optional[str] = None
    for pattern in MOVIE_PATTERNS:
        match = pattern.match(filename)
        if match:
            title = match.group("title")
            year = match.groupdict().get("year")
            break

    if title:
        title = clean_movie_title(title)
    if not title:
        # 标题被清洗空了（例如 "1080p.mkv"），退回不带扩展名的文件名
        title = normalize_delimiters(stem) or stem

    return ParsedMovie(title=title, year=int(year) if year else None, container=container)


def parse_episode_filename(filename: str, show_name: str, parent_dir: str = "") -> ParsedEpisode:
    """解析单集文件名；取不到集数时抛出 ClassificationMiss。"""

    _, container = split_extension(filename)
    show = show_name
    season = season_from_folder(parent_dir) if parent_dir else None
    if season is None:
        season = 1
    episode: Optional[int] = None
    title: Optional[str] = None

    for pattern in EPISODE_PATTERNS:
        match = pattern.match(filename)
        if not match:
            continue
        groups = match.groupdict()
        if groups.get("show"):
            show = groups["show"]
        if groups.get("season") is not None:
            season = int(groups["season"])
        if groups.get("episode") is not None:
            episode = int(groups["episode"])
        if groups.get("title"):
            title = groups["title"]
        break

    if episode is None:
        raise ClassificationMiss(f"无法从文件名中识别集数：{filename}")

    show = normalize_delimiters(show)
    title = normalize_delimiters(title) if title else ""
    if not title:
        title = f"Episode {episode}"

    return ParsedEpisode(
        show=show,
        season=season,
        episode=episode,
        title=title,
        container=container,
    )
