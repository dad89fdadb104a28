"""PROPFIND multistatus 响应解析。"""

from __future__ import annotations

import logging
import posixpath
import urllib.parse
import xml.etree.ElementTree as ET
from typing import List, Optional, Union

from .exceptions import ParseError
from .models import DirectoryEntry

# 服务端可以把 DAV: 绑定到任意前缀，这里统一使用内部别名 d
NAMESPACES = {
    "d": "DAV:",
}


def _normalize_base(queried_path: str) -> str:
    return ("/" + queried_path.lstrip("/")).rstrip("/")


def href_to_path(href: str, queried_path: str) -> str:
    """把 href 转换为解码后的绝对路径，结果不带结尾斜杠（根目录为空串）。"""

    # urlsplit 不会把 ";" 之后的内容当作 params 截掉
    parsed = urllib.parse.urlsplit(href)
    path = urllib.parse.unquote(parsed.path or href)
    base = _normalize_base(queried_path)
    if not path.startswith("/"):
        # 相对 href 以被查询目录为基准
        path = f"{base}/{path.lstrip('/')}"
    return path.rstrip("/")


def _content_length(prop_el: ET.Element) -> Optional[int]:
    size_el = prop_el.find(".//d:getcontentlength", NAMESPACES)
    if size_el is None or size_el.text is None:
        return None
    text = size_el.text.strip()
    if not text.isdigit():
        return None
    return int(text)


def parse_multistatus_strict(xml_text: Union[str, bytes], queried_path: str) -> List[DirectoryEntry]:
    """解析 multistatus，XML 非法时抛出 ParseError。"""

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise ParseError(f"WebDAV 返回的 XML 无法解析：{exc}") from exc

    base = _normalize_base(queried_path)
    entries: List[DirectoryEntry] = []
    for resp in root.iter(f"{{{NAMESPACES['d']}}}response"):
        href_el = resp.find("d:href", NAMESPACES)
        if href_el is None or not (href_el.text or "").strip():
            continue
        href = href_el.text.strip()
        path = href_to_path(href, queried_path)
        # 目录自身的描述条目（以及服务端根目录）不作为子项返回
        if not path or path == base:
            continue
        is_dir = resp.find(".//d:resourcetype/d:collection", NAMESPACES) is not None
        entries.append(
            DirectoryEntry(
                name=posixpath.basename(path),
                path=path,
                raw_href=href,
                is_dir=is_dir,
                size=_content_length(resp),
            )
        )
    return entries


def parse_multistatus(xml_text: Union[str, bytes], queried_path: str) -> List[DirectoryEntry]:
    """解析 multistatus；XML 非法时记录错误并返回空列表，不中断上层扫描。"""

    try:
        return parse_multistatus_strict(xml_text, queried_path)
    except ParseError as exc:
        logging.error("解析 %s 的 PROPFIND 响应失败：%s", queried_path, exc)
        return []
