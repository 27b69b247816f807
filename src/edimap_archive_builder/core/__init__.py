"""アーカイブ構築のコア処理群.

- モデル（セグメント/フィールド/コンポーネントの木）
- 兄弟タグの重複解消
- シリアライズ、プロパティ出力、アーカイブとシンク
"""

from .archive import Archive, ArchiveSink, DirectorySink, ZipStreamSink
from .dedupe import dedupe_sibling_tags, normalize_tags
from .serialize import serialize

__all__ = [
    "Archive",
    "ArchiveSink",
    "DirectorySink",
    "ZipStreamSink",
    "dedupe_sibling_tags",
    "normalize_tags",
    "serialize",
]
