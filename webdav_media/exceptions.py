"""异常定义。"""

from __future__ import annotations

from typing import Optional


class WebDAVMediaError(Exception):
    """本包所有异常的基类。"""


class TransportError(WebDAVMediaError):
    """网络层失败：连接错误、超时等。"""


class ProtocolError(WebDAVMediaError):
    """服务端返回了非 207 / 2xx 的状态码。"""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ParseError(WebDAVMediaError):
    """multistatus XML 无法解析。"""


class ClassificationMiss(WebDAVMediaError):
    """文件名不符合任何剧集命名规则。"""
