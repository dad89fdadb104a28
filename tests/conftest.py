"""
共享的 pytest fixtures。

- FakeTransport：按路径返回预置的 PROPFIND 响应，不发起真实网络请求
- build_multistatus：拼装 multistatus XML
"""

import urllib.parse
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pytest

from webdav_media.config import LibraryPath, ServerConfig
from webdav_media.exceptions import TransportError
from webdav_media.scanner import MediaScanner
from webdav_media.webdav import TransportResponse, WebDAVClient

Entry = Tuple[str, bool, Optional[int]]


def build_multistatus(queried_path: str, entries: Iterable[Entry], prefix: str = "d") -> str:
    """entries 为 (子路径, 是否目录, 大小)；首个 response 是目录自身。"""

    def quote(path: str) -> str:
        return urllib.parse.quote(path, safe="/")

    def response(href: str, is_dir: bool, size: Optional[int]) -> str:
        p = prefix
        rtype = f"<{p}:resourcetype><{p}:collection/></{p}:resourcetype>" if is_dir else f"<{p}:resourcetype/>"
        length = f"<{p}:getcontentlength>{size}</{p}:getcontentlength>" if size is not None else ""
        return (
            f"<{p}:response><{p}:href>{href}</{p}:href><{p}:propstat><{p}:prop>"
            f"{rtype}{length}</{p}:prop></{p}:propstat></{p}:response>"
        )

    parts = [response(quote(queried_path.rstrip("/") + "/"), True, None)]
    for path, is_dir, size in entries:
        href = quote(path) + ("/" if is_dir else "")
        parts.append(response(href, is_dir, size))
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<{prefix}:multistatus xmlns:{prefix}="DAV:">' + "".join(parts) + f"</{prefix}:multistatus>"
    )


class FakeTransport:
    """内存中的 WebDAV 服务端：路径 -> (状态码, 响应体) 或异常。"""

    def __init__(self) -> None:
        self.routes: Dict[str, Union[Tuple[int, str], Exception]] = {}
        self.calls: List[Tuple[str, str, Dict[str, str], Optional[Union[str, bytes]]]] = []

    def add_dir(self, path: str, entries: Iterable[Entry]) -> None:
        self.routes[path.rstrip("/") or "/"] = (207, build_multistatus(path, entries))

    def add_status(self, path: str, status: int, body: str = "") -> None:
        self.routes[path.rstrip("/") or "/"] = (status, body)

    def add_error(self, path: str, exc: Exception) -> None:
        self.routes[path.rstrip("/") or "/"] = exc

    def request(self, method, url, headers=None, body=None) -> TransportResponse:
        self.calls.append((method, url, headers or {}, body))
        path = urllib.parse.unquote(urllib.parse.urlparse(url).path).rstrip("/") or "/"
        route = self.routes.get(path)
        if route is None:
            return TransportResponse(status=404, body=b"")
        if isinstance(route, Exception):
            raise route
        status, text = route
        return TransportResponse(status=status, body=text.encode("utf-8"))

    def requested_paths(self) -> List[str]:
        return [
            urllib.parse.unquote(urllib.parse.urlparse(url).path) for _, url, _, _ in self.calls
        ]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig(
        host="nas.local",
        port=5005,
        webdav_username="admin",
        webdav_password="secret123",
        local_media_paths=[
            LibraryPath(name="Movies", path="/movies", type="movies"),
            LibraryPath(name="TV Shows", path="/tvshows", type="tvshows"),
        ],
        integration_id="7",
        proxy_base_url="http://proxy.local",
    )


@pytest.fixture
def client(server_config: ServerConfig, transport: FakeTransport) -> WebDAVClient:
    return WebDAVClient(base_url=server_config.base_url, transport=transport)


@pytest.fixture
def scanner(server_config: ServerConfig, client: WebDAVClient) -> MediaScanner:
    return MediaScanner(config=server_config, client=client)


@pytest.fixture
def unreachable() -> TransportError:
    return TransportError("connection refused")
