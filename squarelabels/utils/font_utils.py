"""Utility functions for label fonts."""

from PyQt6.QtGui import QFont, QFontDatabase
from typing import Dict

# Resolved families by configured family string
_family_cache: Dict[str, str] = {}


def resolve_font_family(font_family: str) -> str:
    """Resolve a CSS-like font family list to one installed family.

    "Impact, Charcoal, sans-serif" resolves to the first installed entry.
    Generic names (sans-serif, serif, monospace) map to Qt style hints
    through label_font, so they are never looked up here.

    Args:
        font_family: Font family string, possibly with comma-separated fallbacks.

    Returns:
        First available font family, or the first listed one if none is
        installed (Qt falls back on its own in that case).
    """
    if not font_family or ',' not in font_family:
        return font_family
    if font_family in _family_cache:
        return _family_cache[font_family]

    candidates = [f.strip() for f in font_family.split(',') if f.strip()]
    installed = {family.lower(): family for family in QFontDatabase.families()}
    resolved = candidates[0] if candidates else font_family
    for candidate in candidates:
        match = installed.get(candidate.lower())
        if match:
            resolved = match
            break

    _family_cache[font_family] = resolved
    return resolved


_GENERIC_HINTS = {
    'sans-serif': QFont.StyleHint.SansSerif,
    'serif': QFont.StyleHint.Serif,
    'monospace': QFont.StyleHint.Monospace,
}


def label_font(font_family: str, pixel_size: float, bold: bool) -> QFont:
    """Build the QFont for a coordinate label.

    Args:
        font_family: Configured family list.
        pixel_size: Font size in pixels (rounded, at least 1).
        bold: Bold weight for highlighted labels.

    Returns:
        QFont instance.
    """
    family = resolve_font_family(font_family)
    font = QFont(family)
    generic = family.strip().lower()
    if generic in _GENERIC_HINTS:
        font.setStyleHint(_GENERIC_HINTS[generic])
    font.setPixelSize(max(1, int(round(pixel_size))))
    font.setBold(bold)
    return font
