"""Assemble card fields into tagged-document blocks.

Exporters work on the same wire text a card would be stored as, so every
renderer sees identical input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardcutter.tagged.repair import sanitize

if TYPE_CHECKING:
    from collections.abc import Iterable

# Two blank lines between concatenated cards
CARD_SEPARATOR = "\n\n\n"


def card_block(tagline: str, link: str, cite: str, content: str) -> str:
    """Build one card's tagged block.

    The content is sanitised so a card stored before repair existed still
    exports with balanced highlights.
    """
    return (
        f"[TAGLINE]{tagline}[/TAGLINE]\n"
        f"[LINK]{link}[/LINK]\n"
        "\n"
        f"[CITE]{cite}[/CITE]\n"
        "\n"
        f"{sanitize(content)}"
    ).strip()


def join_card_blocks(blocks: Iterable[str]) -> str:
    return CARD_SEPARATOR.join(blocks)
