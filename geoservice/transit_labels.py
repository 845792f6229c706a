"""Display labels for bus and metro lines."""

from __future__ import annotations


def _line_label(prefix: str, ref: str, name: str) -> str:
    if ref and name:
        return f"{prefix} {ref} — {name}"
    if ref or name:
        return f"{prefix} {ref or name}"
    return prefix


def bus_line_label(ref: str, name: str) -> str:
    """Return the label of a bus line from its reference and name."""
    return _line_label("Bus", ref, name)


def metro_line_label(ref: str, name: str) -> str:
    """Return the label of a metro line from its reference and name."""
    return _line_label("Metro", ref, name)