"""Position-based highlight editing.

Flatten a rendered fragment to text plus ranges, mutate the ranges as
plain values, rebuild the fragment.
"""

from cardcutter.highlights.fragment import (
    DEFAULT_COLOR,
    HIGHLIGHT_CLASS,
    FragmentEvent,
    iter_fragment,
)
from cardcutter.highlights.positions import (
    HighlightRange,
    PositionData,
    Segment,
    SelectionAnchor,
    add_highlight,
    apply_edit,
    merge_ranges,
    normalize_ranges,
    position_data_from_tagged,
    rebuild,
    recolor,
    remove_highlight,
    render_fragment,
    restore_selection,
    segments,
    selection_has_highlight,
    tagged_from_position_data,
    to_position_data,
)
from cardcutter.highlights.serialize import serialize_to_tagged
from cardcutter.highlights.session import EditingContext, EditingSession

__all__ = [
    "DEFAULT_COLOR",
    "HIGHLIGHT_CLASS",
    "EditingContext",
    "EditingSession",
    "FragmentEvent",
    "HighlightRange",
    "PositionData",
    "Segment",
    "SelectionAnchor",
    "add_highlight",
    "apply_edit",
    "iter_fragment",
    "merge_ranges",
    "normalize_ranges",
    "position_data_from_tagged",
    "rebuild",
    "recolor",
    "remove_highlight",
    "render_fragment",
    "restore_selection",
    "segments",
    "selection_has_highlight",
    "serialize_to_tagged",
    "tagged_from_position_data",
    "to_position_data",
]
