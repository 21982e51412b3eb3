"""
Placeholder detection for interpolated i18n strings.

Locale values carry interpolation tokens that the application fills at
runtime, e.g. ``"Hello {{name}}"`` (i18next, Vue I18n) or
``"Hello %{name}"`` (Rails, Polyglot). A translation that drops or alters
one of them breaks the UI, so every translated value is checked against
its source.

Design:
- Tokens are compared verbatim, including inner whitespace
- Counts matter: a source with ``{{n}}`` twice needs it twice in the output
- Extra tokens in the translation are tolerated
"""

from __future__ import annotations

import re
from collections import Counter

from i18ntrans_llms.tree import FlatStrings


# ============================================================================
# Pattern Definitions
# ============================================================================

# Mustache style: {{name}}, {{ count }}, {{user.name}}, {{- raw}}
MUSTACHE_PATTERN = re.compile(r'\{\{\s*[-\w.$]+\s*\}\}')

# Percent style: %{name}
PERCENT_PATTERN = re.compile(r'%\{\s*\w+\s*\}')

PLACEHOLDER_PATTERN = re.compile(
    f"{MUSTACHE_PATTERN.pattern}|{PERCENT_PATTERN.pattern}"
)


# ============================================================================
# Utility Functions
# ============================================================================

def extract_placeholders(text: str) -> list[str]:
    """Extract all placeholder tokens from text, in order."""
    return PLACEHOLDER_PATTERN.findall(text)


def count_placeholders(text: str) -> Counter:
    """Count each distinct placeholder token in text."""
    return Counter(extract_placeholders(text))


def find_placeholder_mismatches(source: str, translated: str) -> list[str]:
    """Placeholders of ``source`` that ``translated`` lost.

    Returns:
        Missing tokens, one entry per missing occurrence (empty if all present)
    """
    missing = count_placeholders(source) - count_placeholders(translated)
    return list(missing.elements())


def validate_placeholders(
    source_strings: FlatStrings,
    translated_strings: FlatStrings,
) -> dict[str, list[str]]:
    """Check every key present in both mappings.

    Returns:
        Mapping of key -> missing tokens, only for keys with problems
    """
    problems: dict[str, list[str]] = {}
    for key, source in source_strings.items():
        if key not in translated_strings:
            continue
        missing = find_placeholder_mismatches(source, translated_strings[key])
        if missing:
            problems[key] = missing
    return problems
