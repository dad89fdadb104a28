"""筛选逻辑。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from .config import DEFAULT_VIDEO_EXTENSIONS
from .models import DirectoryEntry


@dataclass
class VideoFilter:
    """负责判断文件是否为视频。"""

    video_exts: Iterable[str] = field(default_factory=lambda: list(DEFAULT_VIDEO_EXTENSIONS))

    def __post_init__(self) -> None:
        # 扩展名统一为小写、不带点，配置里写 ".MKV" 或 "mkv" 都可以
        self._exts: FrozenSet[str] = frozenset(
            ext.strip().lower().lstrip(".") for ext in self.video_exts if ext.strip()
        )

    def accepts(self, entry: DirectoryEntry) -> bool:
        return not entry.is_dir and entry.extension in self._exts
