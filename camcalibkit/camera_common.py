"""Helpers for naming camera topics."""

from __future__ import annotations


def split(text: str, delim: str) -> list[str]:
    """Split on ``delim``, dropping empty tokens except the final one."""
    if not delim:
        raise ValueError("delimiter must not be empty")
    parts = text.split(delim)
    return [part for part in parts[:-1] if part] + [parts[-1]]


def get_camera_info_topic(base_topic: str) -> str:
    """Return the camera info topic that is sibling to ``base_topic``."""
    tokens = split(base_topic, "/")
    return "".join("/" + token for token in tokens[:-1]) + "/camera_info"


def erase_last_copy(text: str, search: str) -> str:
    """Return ``text`` with the last occurrence of ``search`` removed."""
    found = text.rfind(search)
    if found == -1:
        return text
    return text[:found] + text[found + len(search):]