"""Tests for walking rendered fragments and serialising them to <HL> tags."""

from __future__ import annotations

import pytest

from cardcutter.highlights import FragmentEvent, iter_fragment, serialize_to_tagged


class TestIterFragment:
    """Walk events for the fragment shapes the editor produces."""

    def test_event_sequence(self) -> None:
        events = list(
            iter_fragment('a<span class="highlight" data-color="#ff0000">b</span>')
        )
        assert events == [
            FragmentEvent("text", text="a"),
            FragmentEvent("open", color="#FF0000"),
            FragmentEvent("text", text="b"),
            FragmentEvent("close"),
        ]

    def test_highlight_class_among_others(self) -> None:
        events = list(iter_fragment('<span class="x highlight y">b</span>'))
        assert [e.kind for e in events] == ["open", "text", "close"]

    def test_scripts_and_comments_skipped(self) -> None:
        events = list(iter_fragment("a<!-- note --><script>x()</script>b"))
        assert [e.text for e in events] == ["a", "b"]

    def test_entities_decoded(self) -> None:
        events = list(iter_fragment("a &amp; b"))
        assert events == [FragmentEvent("text", text="a & b")]

    def test_empty_input_yields_nothing(self) -> None:
        assert list(iter_fragment("")) == []


class TestSerializeToTagged:
    """Fragment to stored content."""

    @pytest.mark.parametrize(
        ("fragment", "expected"),
        [
            ('he<span class="highlight">llo</span> world', "he<HL>llo</HL> world"),
            (
                '<span class="highlight">a<span class="highlight">b</span>c</span>',
                "<HL>abc</HL>",
            ),
            (
                '<p><span class="highlight">a</span></p><p>b</p>',
                "<HL>a</HL>\nb",
            ),
            ('<span class="highlight">a<br>b</span>', "<HL>a</HL>\n<HL>b</HL>"),
            ("a<br><br><br><br>b", "a\n\nb"),
            (
                '<span class="highlight">a</span><span class="highlight">b</span>',
                "<HL>ab</HL>",
            ),
        ],
    )
    def test_serialization(self, fragment: str, expected: str) -> None:
        assert serialize_to_tagged(fragment) == expected

    def test_output_is_trimmed(self) -> None:
        assert serialize_to_tagged("<p></p><p>x</p><p></p>") == "x"

    def test_empty_highlight_dropped(self) -> None:
        assert serialize_to_tagged('a<span class="highlight"></span>b') == "ab"
