"""OpenAI-compatible chat completions proxy backed by Google Gemini."""

from ._version import __version__


__all__ = ["__version__"]
