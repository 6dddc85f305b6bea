"""Naming conventions for tree branches, files and the like."""

from __future__ import annotations


def _to_name(value: object) -> str:
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float):
        return f"{value:f}"
    return str(value)


def canonical_name(*args: object) -> str:
    """Join the parts with underscores."""
    if not args:
        raise TypeError("canonical_name needs at least one part")
    return "_".join(_to_name(arg) for arg in args)


def name_timestamp(group: int) -> str:
    return canonical_name("timestamp", group)


def name_time(group: int) -> str:
    return canonical_name("sample_time", group)


def name_trigger(group: int) -> str:
    return canonical_name("trigger", group)


def name_channel(group: int, channel: int) -> str:
    return canonical_name("channel", group, channel)