"""重複タグの解消（Tag Deduplicator）.

兄弟ノード間で同じ xmltag を持つノードに連番を付与し、シリアライズ後の要素名を
一意にする。

方針:
    - 兄弟の並び順は変えない（変更するのは xmltag 文字列のみ）
    - xmltag が None のノードは数えないし、リネームもしない
    - 重複していないタグは、生成された "<tag>-<n>" と衝突しても触らない
"""

from __future__ import annotations

from collections.abc import Sequence

from .model import INDEXED_NODE_SEPARATOR, MappingNode, Segment, SegmentGroup


def normalize_tags(group: SegmentGroup) -> None:
    """Make sibling tags unique throughout a segment group tree (in place).

    Pre-order, depth-first: a segment's fields are drilled down to their
    sub-components before the group's child segments are deduplicated and
    visited in their original order.
    """
    if isinstance(group, Segment):
        _dedupe_branch(group.fields)

    if group.segments:
        dedupe_sibling_tags(group.segments)
        for child in group.segments:
            normalize_tags(child)


def _dedupe_branch(nodes: Sequence[MappingNode] | None) -> None:
    if not nodes:
        return

    dedupe_sibling_tags(nodes)
    for node in nodes:
        _dedupe_branch(node.children)


def dedupe_sibling_tags(nodes: Sequence[MappingNode] | None) -> int:
    """Suffix duplicated sibling tags with a 1-based running index.

    Args:
        nodes: Sibling nodes, in document order

    Returns:
        Number of nodes renamed

    Examples:
        Tags ``QTY, QTY, UOM`` become ``QTY-1, QTY-2, UOM``.
    """
    if not nodes:
        return 0

    # 元のタグで先にグループ化する（初出順）。リネーム結果は他のグループに影響しない
    groups: dict[str, list[MappingNode]] = {}
    for node in nodes:
        if node.xmltag is not None:
            groups.setdefault(node.xmltag, []).append(node)

    renamed = 0
    for tag, matches in groups.items():
        if len(matches) < 2:
            continue
        for index, node in enumerate(matches, start=1):
            node.xmltag = f"{tag}{INDEXED_NODE_SEPARATOR}{index}"
        renamed += len(matches)
    return renamed
