"""命令行入口。"""

from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from .config import ServerConfig
from .scanner import MediaScanner
from .webdav import WebDAVClient


def build_scanner() -> MediaScanner:
    """构建带依赖的扫描器实例，用于脚本或其他调用者复用。"""

    config = ServerConfig.from_env()
    client = WebDAVClient.from_config(config)

    logging.getLogger().setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    return MediaScanner(config=config, client=client)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="webdav-media", description="扫描 WebDAV 上的电影与剧集。")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("test", help="测试连接并统计视频文件数量")
    sub.add_parser("libraries", help="列出配置的媒体库")
    sub.add_parser("movies", help="列出电影")
    sub.add_parser("series", help="列出剧集")
    seasons = sub.add_parser("seasons", help="列出某部剧集的季")
    seasons.add_argument("series_id")
    episodes = sub.add_parser("episodes", help="列出某部剧集（或某一季）的单集")
    episodes.add_argument("series_id")
    episodes.add_argument("--season", dest="season_id", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """命令行执行入口。"""

    args = _build_parser().parse_args(argv)
    scanner = build_scanner()

    if args.command == "test":
        report = scanner.test_connection()
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        return 0 if report.success else 1

    if args.command == "libraries":
        records = scanner.fetch_libraries()
    elif args.command == "movies":
        records = scanner.fetch_movies()
    elif args.command == "series":
        records = scanner.fetch_series()
    elif args.command == "seasons":
        records = scanner.fetch_seasons(args.series_id)
    else:
        records = scanner.fetch_episodes(args.series_id, args.season_id)

    payload = [record.to_dict() for record in records]
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    logging.info("输出 %s 条记录。", len(payload))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
