"""Tag grammar constants shared by the parser, repairer and renderers.

Block tags (``[TAGLINE]``, ``[LINK]``, ``[CITE]``) are matched
case-insensitively at the current parse position. Inline highlight tags are
``<HL>`` / ``</HL>``, canonicalised to upper case on output.
"""

from __future__ import annotations

import re

HL_OPEN = "<HL>"
HL_CLOSE = "</HL>"

# Block tags, each optionally followed by a single newline
TAGLINE_PATTERN = re.compile(
    r"\[TAGLINE\](.*?)\[/TAGLINE\]\n?", re.IGNORECASE | re.DOTALL
)
LINK_PATTERN = re.compile(
    r'\[LINK(?:\s+href="([^"]*)")?\s*\](.*?)\[/LINK\]\n?',
    re.IGNORECASE | re.DOTALL,
)
CITE_PATTERN = re.compile(r"\[CITE\](.*?)\[/CITE\]\n?", re.IGNORECASE | re.DOTALL)

# Cheap scan for where a block tag *might* start; confirmed by the patterns above
BLOCK_START_PATTERN = re.compile(r"\[(?:TAGLINE|LINK|CITE)\b", re.IGNORECASE)

# Exact inline tags (no attributes), case-insensitive
HL_TAG_PATTERN = re.compile(r"<(/?)HL>", re.IGNORECASE)
HL_OPEN_PATTERN = re.compile(r"<HL>", re.IGNORECASE)
HL_CLOSE_PATTERN = re.compile(r"</HL>", re.IGNORECASE)

# Closing block tags; group 1 names the block kind
BLOCK_CLOSE_PATTERN = re.compile(r"\[/(TAGLINE|LINK|CITE)\]", re.IGNORECASE)
