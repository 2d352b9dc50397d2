"""
Diff status colors.

Colors are ``#rrggbb`` strings so they work in a style sheet, a QColor or
a terminal escape without loading a GUI module.
"""

from typing import Optional

from sheet_diff_tool.core.sheet_model import DiffStatus

ANSI_RESET = "\x1b[0m"


class DiffColors:
    """Cell backgrounds and marker accents per diff status."""

    ADDED_BG = "#dcfce7"
    REMOVED_BG = "#fee2e2"
    MODIFIED_BG = "#fef9c3"

    ADDED_BG_DARK = "#1f3d27"
    REMOVED_BG_DARK = "#4a2323"
    MODIFIED_BG_DARK = "#4a4119"

    ADDED_ACCENT = "#16a34a"
    REMOVED_ACCENT = "#dc2626"
    MODIFIED_ACCENT = "#ca8a04"
    NEUTRAL_ACCENT = "#808080"

    @classmethod
    def get_background(cls, status: DiffStatus, dark_mode: bool = False) -> Optional[str]:
        """Background for a cell; None leaves an unchanged cell unpainted."""
        suffix = "_BG_DARK" if dark_mode else "_BG"
        if status == DiffStatus.UNCHANGED:
            return None
        return getattr(cls, status.name + suffix)

    @classmethod
    def get_accent(cls, status: DiffStatus) -> str:
        if status == DiffStatus.UNCHANGED:
            return cls.NEUTRAL_ACCENT
        return getattr(cls, status.name + "_ACCENT")


def ansi_foreground(hex_color: str, text: str) -> str:
    """Wrap text in a 24-bit terminal foreground color."""
    value = hex_color.lstrip("#")
    red, green, blue = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return f"\x1b[38;2;{red};{green};{blue}m{text}{ANSI_RESET}"
