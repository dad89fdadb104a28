"""WebDAV 客户端封装。"""

from __future__ import annotations

import logging
import urllib.parse
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

import requests

from .config import DEFAULT_TIMEOUT, ServerConfig
from .exceptions import ParseError, ProtocolError, TransportError
from .filters import VideoFilter
from .models import DirectoryEntry
from .multistatus import parse_multistatus_strict

PROPFIND_BODY = """<?xml version="1.0" encoding="utf-8" ?>
<d:propfind xmlns:d="DAV:">
  <d:prop>
    <d:resourcetype/>
    <d:getcontentlength/>
    <d:displayname/>
  </d:prop>
</d:propfind>"""


def is_success(status: int) -> bool:
    return status == 207 or 200 <= status < 300


@dataclass
class TransportResponse:
    status: int
    body: bytes = b""


@dataclass
class WebDAVTransport:
    """发送任意方法的 HTTP 请求。

    NAS 上的 WebDAV 普遍使用自签名证书，因此默认不校验 TLS 证书，
    这是有意识的信任取舍。每次请求独立发出，不共享连接状态。
    """

    auth: Optional[Tuple[str, str]] = None
    verify_ssl: bool = False
    timeout: int = DEFAULT_TIMEOUT

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Union[str, bytes, None] = None,
    ) -> TransportResponse:
        if isinstance(body, str):
            body = body.encode("utf-8")
        try:
            response = requests.request(
                method=method,
                url=url,
                data=body,
                headers=headers or {},
                auth=self.auth,
                verify=self.verify_ssl,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {urllib.parse.unquote(url)} 请求失败：{exc}") from exc
        return TransportResponse(status=response.status_code, body=response.content)


@dataclass
class WebDAVClient:
    """负责与 WebDAV 服务交互：列目录、递归收集视频文件。"""

    base_url: str
    transport: WebDAVTransport
    video_filter: VideoFilter = field(default_factory=VideoFilter)

    @classmethod
    def from_config(cls, config: ServerConfig) -> "WebDAVClient":
        transport = WebDAVTransport(auth=config.auth, timeout=config.timeout)
        return cls(
            base_url=config.base_url,
            transport=transport,
            video_filter=VideoFilter(config.get_video_extensions()),
        )

    def join_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url.rstrip("/") + urllib.parse.quote(path, safe="/")

    def collection_url(self, path: str) -> str:
        # PROPFIND 目录时 URL 保证恰好一个结尾斜杠
        return self.join_url(path).rstrip("/") + "/"

    def propfind(self, path: str, depth: int = 1) -> List[DirectoryEntry]:
        """对目录发起 PROPFIND；状态码或解析失败时抛出异常。"""

        url = self.collection_url(path)
        logging.debug("PROPFIND %s", urllib.parse.unquote(url))
        headers = {
            "Depth": str(depth),
            "Content-Type": "application/xml; charset=utf-8",
        }
        response = self.transport.request("PROPFIND", url, headers=headers, body=PROPFIND_BODY)
        if not is_success(response.status):
            raise ProtocolError(
                f"PROPFIND {path} 返回 HTTP {response.status}", status=response.status
            )
        return parse_multistatus_strict(response.body, path)

    def list_directory(self, path: str) -> List[DirectoryEntry]:
        """列出目录的直接子项。单个目录失败只记录日志并返回空列表，不中断整体扫描。"""

        try:
            return self.propfind(path, depth=1)
        except ProtocolError as exc:
            logging.warning("列目录失败：%s (HTTP %s)", path, exc.status)
        except TransportError as exc:
            logging.error("列目录出错：%s -> %s", path, exc)
        except ParseError as exc:
            logging.error("解析目录 %s 的响应失败：%s", path, exc)
        return []

    def scan_video_files(self, path: str, recursive: bool = True) -> List[DirectoryEntry]:
        """深度优先收集视频文件。不做环检测，依赖服务端目录本身无环。"""

        files: List[DirectoryEntry] = []
        for entry in self.list_directory(path):
            if entry.is_dir:
                if recursive:
                    files.extend(self.scan_video_files(entry.path, recursive=True))
                continue
            if self.video_filter.accepts(entry):
                files.append(entry)
        return files
