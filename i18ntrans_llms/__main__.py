"""
Entry point for running i18ntrans-llms as a module.

Usage:
    python -m i18ntrans_llms --help
    python -m i18ntrans_llms translate -i en.json -f en -t fr,de -o locales
    python -m i18ntrans_llms missing locales/en.json locales
"""
from .cli import app


if __name__ == "__main__":
    app()
