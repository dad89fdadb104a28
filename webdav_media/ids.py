"""基于路径的确定性标识。"""

from __future__ import annotations

import base64
import binascii
import hashlib


def path_id(path: str) -> str:
    """媒体库、剧集、季使用路径的 md5 作为 ID。"""

    return hashlib.md5(path.encode("utf-8")).hexdigest()


def synthetic_season_id(series_path: str) -> str:
    # 没有季目录时，虚拟的第一季挂在剧集目录下
    return path_id(f"{series_path}/season1")


def encode_item_id(path: str) -> str:
    """电影与单集使用可逆的 base64 路径作为 ID，调用方无需查表即可还原路径。"""

    return base64.b64encode(path.encode("utf-8")).decode("ascii")


def decode_item_id(item_id: str) -> str:
    try:
        return base64.b64decode(item_id.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as exc:
        raise ValueError(f"无效的条目 ID：{item_id}") from exc
