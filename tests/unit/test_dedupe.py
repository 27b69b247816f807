"""Unit tests for sibling tag deduplication."""

from edimap_archive_builder.core.dedupe import dedupe_sibling_tags, normalize_tags
from edimap_archive_builder.core.model import Component, Field, Segment, SegmentGroup, SubComponent


def _tags(nodes) -> list[str | None]:
    return [n.xmltag for n in nodes]


class TestDedupeSiblingTags:
    """dedupe_sibling_tags のテスト."""

    def test_duplicated_tags_are_indexed(self) -> None:
        """重複タグに 1 始まりの連番を付ける."""
        fields = [Field(xmltag="QTY"), Field(xmltag="QTY"), Field(xmltag="UOM")]

        renamed = dedupe_sibling_tags(fields)

        assert _tags(fields) == ["QTY-1", "QTY-2", "UOM"]
        assert renamed == 2

    def test_three_occurrences(self) -> None:
        """3つ以上の重複."""
        segments = [SegmentGroup(xmltag="SEG") for _ in range(3)]
        dedupe_sibling_tags(segments)
        assert _tags(segments) == ["SEG-1", "SEG-2", "SEG-3"]

    def test_counter_is_per_tag_and_keeps_order(self) -> None:
        """連番はタグごと、並び順は変えない."""
        nodes = [Field(xmltag=t) for t in ["A", "B", "A", "C", "B", "A"]]
        original = list(nodes)

        dedupe_sibling_tags(nodes)

        assert _tags(nodes) == ["A-1", "B-1", "A-2", "C", "B-2", "A-3"]
        # 並び順（ノードの同一性）は変わらない
        assert all(a is b for a, b in zip(nodes, original))

    def test_untagged_nodes_are_ignored(self) -> None:
        """xmltag が None のノードは数えない."""
        nodes = [Field(xmltag=None), Field(xmltag=None), Field(xmltag="X")]
        assert dedupe_sibling_tags(nodes) == 0
        assert _tags(nodes) == [None, None, "X"]

    def test_untagged_nodes_between_duplicates(self) -> None:
        """タグ無しノードを挟んでも連番は続く."""
        nodes = [Field(xmltag="X"), Field(xmltag=None), Field(xmltag="X")]
        dedupe_sibling_tags(nodes)
        assert _tags(nodes) == ["X-1", None, "X-2"]

    def test_empty_and_none(self) -> None:
        """空リストと None."""
        assert dedupe_sibling_tags([]) == 0
        assert dedupe_sibling_tags(None) == 0

    def test_unique_tag_colliding_with_generated_tag_is_left_alone(self) -> None:
        """生成タグと既存の一意タグが衝突しても、一意タグは変更しない."""
        nodes = [Field(xmltag="A"), Field(xmltag="A"), Field(xmltag="A-1")]
        dedupe_sibling_tags(nodes)
        assert _tags(nodes) == ["A-1", "A-2", "A-1"]


class TestNormalizeTags:
    """normalize_tags のテスト."""

    def _segment(self) -> Segment:
        return Segment(
            segcode="QTY",
            xmltag="Quantity",
            fields=[
                Field(
                    xmltag="detail",
                    components=[
                        Component(xmltag="code", sub_components=[SubComponent(xmltag="s"), SubComponent(xmltag="s")]),
                        Component(xmltag="code"),
                        Component(xmltag="qualifier"),
                    ],
                ),
                Field(xmltag="detail"),
                Field(xmltag="unit"),
            ],
        )

    def test_drills_into_fields_components_and_sub_components(self) -> None:
        """フィールド以下のサブコンポーネントまで処理する."""
        segment = self._segment()
        root = SegmentGroup(xmltag="Segments", segments=[segment])

        normalize_tags(root)

        assert _tags(segment.fields) == ["detail-1", "detail-2", "unit"]
        components = segment.fields[0].components
        assert _tags(components) == ["code-1", "code-2", "qualifier"]
        assert _tags(components[0].sub_components) == ["s-1", "s-2"]

    def test_recurses_into_nested_groups(self) -> None:
        """入れ子のグループも処理する."""
        inner = SegmentGroup(
            xmltag="Party",
            segments=[Segment(segcode="NAD", xmltag="Name"), Segment(segcode="NAD", xmltag="Name")],
        )
        root = SegmentGroup(
            xmltag="Segments",
            segments=[
                Segment(segcode="DTM", xmltag="Date"),
                Segment(segcode="DTM", xmltag="Date"),
                inner,
            ],
        )

        normalize_tags(root)

        assert _tags(root.segments) == ["Date-1", "Date-2", "Party"]
        assert _tags(inner.segments) == ["Name-1", "Name-2"]
        assert root.xmltag == "Segments"

    def test_segment_with_child_segments(self) -> None:
        """子セグメントを持つセグメント."""
        segment = self._segment()
        segment.segments = [Segment(segcode="FTX", xmltag="Text"), Segment(segcode="FTX", xmltag="Text")]

        normalize_tags(segment)

        assert _tags(segment.fields) == ["detail-1", "detail-2", "unit"]
        assert _tags(segment.segments) == ["Text-1", "Text-2"]

    def test_idempotent(self) -> None:
        """2回目の適用では何も変わらない."""
        root = SegmentGroup(xmltag="Segments", segments=[self._segment(), self._segment()])
        normalize_tags(root)

        def snapshot(group: SegmentGroup) -> list:
            result = [group.xmltag]
            if isinstance(group, Segment):
                for f in group.fields:
                    result.append(f.xmltag)
                    for c in f.components:
                        result.append(c.xmltag)
                        result.extend(s.xmltag for s in c.sub_components)
            for child in group.segments:
                result.extend(snapshot(child))
            return result

        first = snapshot(root)
        normalize_tags(root)
        assert snapshot(root) == first
        assert _tags(root.segments) == ["Quantity-1", "Quantity-2"]
