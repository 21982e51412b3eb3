"""
Grouping of flat keys into per-section translation units.

A section is the first segment of a dotted key. Each section is sent to
the translation service as one request, so related UI strings travel
together and the model sees them in context.
"""

from __future__ import annotations

from typing import Iterable

from i18ntrans_llms.tree import FlatStrings, check_key

# section name -> {remainder key -> value}
GroupedStrings = dict[str, FlatStrings]


def split_key(key: str) -> tuple[str, str]:
    """Split a flat key into (section, remainder).

    The remainder is empty when the key has no dot.
    """
    section, _, remainder = key.partition(".")
    return section, remainder


def section_key(section: str, remainder: str) -> str:
    """Inverse of ``split_key``."""
    return f"{section}.{remainder}" if remainder else section


def group_by_section(flat: FlatStrings) -> GroupedStrings:
    """Partition a flat mapping by first key segment.

    Keys with an empty segment are rejected, since ``"a."`` and ``"a"``
    would share section ``a`` and remainder ``""``.

    Example:
        >>> group_by_section({"auth.login.title": "Entrar", "nav.home": "Home"})
        {'auth': {'login.title': 'Entrar'}, 'nav': {'home': 'Home'}}
    """
    result: GroupedStrings = {}
    for key, value in flat.items():
        check_key(key)
        section, remainder = split_key(key)
        result.setdefault(section, {})[remainder] = value
    return result


def ungroup_from_sections(grouped: GroupedStrings) -> FlatStrings:
    """Reassemble the flat mapping from a section map."""
    result: FlatStrings = {}
    for section, strings in grouped.items():
        for remainder, value in strings.items():
            result[section_key(section, remainder)] = value
    return result


def filter_sections(grouped: GroupedStrings, keys: Iterable[str]) -> GroupedStrings:
    """Keep only entries whose full key is in ``keys``.

    Sections left empty are dropped; section order is unchanged.
    """
    wanted = set(keys)
    result: GroupedStrings = {}
    for section, strings in grouped.items():
        kept = {
            remainder: value
            for remainder, value in strings.items()
            if section_key(section, remainder) in wanted
        }
        if kept:
            result[section] = kept
    return result
