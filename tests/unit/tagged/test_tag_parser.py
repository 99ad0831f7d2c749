"""Tests for the tagged-document parser, serialiser and card blocks."""

from __future__ import annotations

import time

from cardcutter.tagged import (
    CARD_SEPARATOR,
    Citation,
    Link,
    Run,
    Tagline,
    Text,
    card_block,
    join_card_blocks,
    parse,
    parse_runs,
    serialize,
    split_lines,
)

CARD_TEXT = (
    "[TAGLINE]Claim[/TAGLINE]\n"
    '[LINK href="https://x.org/a"]https://x.org/a[/LINK]\n'
    "\n"
    "[CITE]Smith 24[/CITE]\n"
    "\n"
    "Body <HL>key</HL> text"
)


class TestParseRuns:
    def test_plain_only(self) -> None:
        assert parse_runs("abc") == [Run("plain", "abc")]

    def test_alternating_runs(self) -> None:
        assert parse_runs("a <HL>b</HL> c") == [
            Run("plain", "a "),
            Run("highlight", "b"),
            Run("plain", " c"),
        ]

    def test_empty_highlight_emits_nothing(self) -> None:
        assert parse_runs("a<HL></HL>b") == [Run("plain", "a"), Run("plain", "b")]

    def test_highlight_spanning_newline(self) -> None:
        assert parse_runs("<HL>a\nb</HL>") == [Run("highlight", "a\nb")]

    def test_unclosed_open_stays_plain(self) -> None:
        assert parse_runs("a <HL>b <HL>c") == [Run("plain", "a <HL>b <HL>c")]

    def test_orphan_close_stays_plain(self) -> None:
        assert parse_runs("a</HL> <hl>b</hl>") == [
            Run("plain", "a</HL> "),
            Run("highlight", "b"),
        ]

    def test_open_pairs_with_first_close(self) -> None:
        assert parse_runs("<HL>a <HL>b</HL> c") == [
            Run("highlight", "a <HL>b"),
            Run("plain", " c"),
        ]


class TestParse:
    """Block structure recognition."""

    def test_tagline_then_body(self) -> None:
        nodes = parse("[TAGLINE]Hi <HL>there</HL>[/TAGLINE]\nBody")
        assert nodes == [
            Tagline(runs=[Run("plain", "Hi "), Run("highlight", "there")]),
            Text(runs=[Run("plain", "Body")]),
        ]

    def test_full_card(self) -> None:
        nodes = parse(CARD_TEXT, "#FFFF00")
        assert [type(n) for n in nodes] == [Tagline, Link, Citation, Text]
        assert nodes[1] == Link(href="https://x.org/a", text="https://x.org/a")
        assert nodes[2] == Citation(text="Smith 24")
        assert nodes[3].text == "Body key text"
        assert nodes[0].highlight_color == "#FFFF00"
        assert nodes[3].highlight_color == "#FFFF00"

    def test_link_without_href_uses_text(self) -> None:
        assert parse("[LINK]https://a.b[/LINK]") == [
            Link(href="https://a.b", text="https://a.b")
        ]

    def test_link_with_empty_text_uses_href(self) -> None:
        assert parse('[LINK href="https://a.b"][/LINK]') == [
            Link(href="https://a.b", text="https://a.b")
        ]

    def test_block_tags_case_insensitive(self) -> None:
        nodes = parse("[tagline]T[/tagline]\n[cite]C[/cite]")
        assert [type(n) for n in nodes] == [Tagline, Citation]

    def test_unclosed_tag_is_plain_text(self) -> None:
        assert parse("[TAGLINE]oops\nbody") == [
            Text(runs=[Run("plain", "[TAGLINE]oops\nbody")])
        ]

    def test_unclosed_tag_before_real_block(self) -> None:
        nodes = parse("[CITE]dangling [TAGLINE]T[/TAGLINE]")
        assert nodes == [
            Text(runs=[Run("plain", "[CITE]dangling ")]),
            Tagline(runs=[Run("plain", "T")]),
        ]

    def test_crlf_normalised(self) -> None:
        assert parse("[CITE]c[/CITE]\r\nbody") == [
            Citation(text="c"),
            Text(runs=[Run("plain", "body")]),
        ]

    def test_whitespace_between_blocks_produces_no_node(self) -> None:
        nodes = parse("[CITE]a[/CITE]\n  \n\n[CITE]b[/CITE]")
        assert nodes == [Citation(text="a"), Citation(text="b")]

    def test_inner_blank_lines_kept_in_body(self) -> None:
        (node,) = parse("one\n\ntwo")
        assert node.text == "one\n\ntwo"

    def test_empty_input(self) -> None:
        assert parse("") == []

    def test_pathological_brackets_terminate(self) -> None:
        nodes = parse("[" * 500 + "[LINK" * 100)
        assert len(nodes) == 1

    def test_close_before_open_does_not_count(self) -> None:
        (node,) = parse("[/CITE] [CITE]x")
        assert isinstance(node, Text)
        assert node.text == "[/CITE] [CITE]x"


class TestParseScaling:
    """Unclosed block tags must not trigger a rescan per tag."""

    def test_many_unclosed_tags(self) -> None:
        text = "[CITE] x " * 20_000
        started = time.perf_counter()
        (node,) = parse(text)
        elapsed = time.perf_counter() - started
        assert node.text == text
        assert elapsed < 2.0

    def test_unclosed_tags_between_complete_blocks(self) -> None:
        text = "[CITE]a[/CITE][TAGLINE]" * 5_000
        started = time.perf_counter()
        nodes = parse(text)
        elapsed = time.perf_counter() - started
        assert len(nodes) == 10_000
        assert nodes[0] == Citation(text="a")
        assert nodes[1] == Text(runs=[Run("plain", "[TAGLINE]")])
        assert elapsed < 2.0


class TestSerialize:
    """Canonical wire format."""

    def test_canonical_card_round_trips_exactly(self) -> None:
        assert serialize(parse(CARD_TEXT)) == CARD_TEXT

    def test_parse_of_serialized_nodes_is_stable(self) -> None:
        nodes = [
            Tagline(runs=[Run("highlight", "Tax"), Run("plain", " works")]),
            Link(href="https://x.org", text="source"),
            Citation(text="Lee 23"),
            Text(runs=[Run("plain", "a "), Run("highlight", "b")]),
        ]
        assert parse(serialize(nodes)) == nodes


class TestSplitLines:
    def test_run_split_across_lines(self) -> None:
        lines = split_lines(
            [Run("plain", "a "), Run("highlight", "b\nc"), Run("plain", " d")]
        )
        assert lines == [
            [Run("plain", "a "), Run("highlight", "b")],
            [Run("highlight", "c"), Run("plain", " d")],
        ]

    def test_blank_lines_are_empty_lists(self) -> None:
        assert split_lines([Run("plain", "a\n\nb")]) == [
            [Run("plain", "a")],
            [],
            [Run("plain", "b")],
        ]


class TestCardBlocks:
    def test_card_block_layout(self) -> None:
        block = card_block("T", "https://l", "C", "<HL>a")
        assert block == (
            "[TAGLINE]T[/TAGLINE]\n"
            "[LINK]https://l[/LINK]\n"
            "\n"
            "[CITE]C[/CITE]\n"
            "\n"
            "<HL>a</HL>"
        )

    def test_card_block_parses_to_four_nodes(self) -> None:
        nodes = parse(card_block("T", "https://l", "C", "body"))
        assert [type(n) for n in nodes] == [Tagline, Link, Citation, Text]

    def test_join_uses_two_blank_lines(self) -> None:
        assert CARD_SEPARATOR == "\n\n\n"
        assert join_card_blocks(["a", "b"]) == "a\n\n\nb"
