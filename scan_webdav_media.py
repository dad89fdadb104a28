# -*- coding: utf-8 -*-
"""WebDAV 媒体扫描脚本入口。

真正的实现位于 :mod:`webdav_media` 包内，可直接复用其中的类。
"""

from __future__ import annotations

from webdav_media.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
