"""anifetch Shared Module.

Constants, error handling, logging helpers and data models used across anifetch.
"""

__all__ = ["constants", "errors", "logging", "models"]
