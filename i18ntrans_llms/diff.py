"""
Missing-key detection between a reference locale and translated locales.

``find_missing_keys`` answers "which source strings have never been
translated into any language yet": a key is reported only when it is
absent from every comparison mapping. With a single comparison this is
plain set difference, which is what incremental translation uses.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, Union

from i18ntrans_llms.errors import I18nTransError, InputNotFoundError
from i18ntrans_llms.tree import FlatStrings, flatten, load_tree

logger = logging.getLogger(__name__)


def find_missing_keys(
    reference: FlatStrings,
    comparisons: Sequence[FlatStrings],
) -> list[str]:
    """Keys of ``reference`` absent from every mapping in ``comparisons``.

    A key present in at least one comparison is not reported, even if the
    others lack it. With no comparisons every reference key is missing.

    Returns:
        Missing keys in reference order
    """
    return [
        key for key in reference
        if all(key not in other for other in comparisons)
    ]


def missing_for_target(source: FlatStrings, existing: FlatStrings) -> list[str]:
    """Source keys that a single translated mapping does not have yet."""
    return find_missing_keys(source, [existing])


def find_missing_keys_in_dir(
    main_file: Union[str, Path],
    translations_dir: Union[str, Path],
) -> list[str]:
    """Compare a main locale file against every other JSON file in a directory.

    Files in ``translations_dir`` that cannot be read are skipped with a
    warning; the main file itself is excluded by name.

    Raises:
        InputNotFoundError: If the main file or the directory is missing
    """
    main_file = Path(main_file)
    translations_dir = Path(translations_dir)
    if not main_file.is_file():
        raise InputNotFoundError(f"Main file not found: {main_file}")
    if not translations_dir.is_dir():
        raise InputNotFoundError(
            f"Translations directory not found: {translations_dir}"
        )

    reference = flatten(load_tree(main_file))

    comparisons: list[FlatStrings] = []
    for path in sorted(translations_dir.glob("*.json")):
        if path.name == main_file.name:
            continue
        try:
            comparisons.append(flatten(load_tree(path)))
        except I18nTransError as e:
            logger.warning("Skipping invalid file %s: %s", path, e)

    logger.info(
        "Compared %d keys of %s against %d file(s)",
        len(reference), main_file.name, len(comparisons),
    )
    return find_missing_keys(reference, comparisons)
