"""
Project-wide defaults.

Module Contents:
    APP_NAME: Application name for display purposes
    DEFAULT_MODEL: Chat model used when none is given
    DEFAULT_TEMPERATURE: Sampling temperature for translation requests
    JSON_INDENT: Indentation of written locale files
    EXCERPT_LENGTH: How much of an unparseable reply is kept in errors
    CONFIG_DIR: Per-user directory for stored settings and keys

Runtime options live in ``PipelineConfig`` and ``LLMConfig``; this module
only holds the values they default to.

Example:
    >>> from i18ntrans_llms.config import DEFAULT_MODEL
    >>> print(DEFAULT_MODEL)
    gpt-4o
"""

from pathlib import Path

# Application name for display and identification
APP_NAME = "i18ntrans-llms"

# OpenAI chat model used when --model is not given
DEFAULT_MODEL = "gpt-4o"

# Low temperature keeps terminology stable between sections
DEFAULT_TEMPERATURE = 0.3

DEFAULT_MAX_TOKENS = 4096

# Seconds; a timeout surfaces as TranslationServiceError
DEFAULT_TIMEOUT = 120.0

# Locale files are written with 2-space indentation and a trailing newline
JSON_INDENT = 2

# Characters of a bad reply quoted in ResponseParseError
EXCERPT_LENGTH = 500

# Per-user settings directory (stored keys)
CONFIG_DIR = Path.home() / ".i18ntrans"
