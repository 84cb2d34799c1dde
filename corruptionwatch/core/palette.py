"""
Category Colorizer

Colours are positional: the n-th category in display order always gets
the n-th palette colour, wrapping after twelve.
"""

PALETTE: tuple[str, ...] = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7", "#DDA0DD",
    "#98D8C8", "#F7DC6F", "#BB8FCE", "#85C1E9", "#F8C471", "#82E0AA",
)


def color_for_index(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def assign_colors(keys: list[str]) -> list[str]:
    """One colour per key, in the order given."""
    return [color_for_index(i) for i in range(len(keys))]
