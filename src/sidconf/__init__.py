"""Core library for the sidplayfp configuration file.

Contains the INI document store, the typed settings reader and the path
helpers used by the CLI.
"""

__all__ = [
    "config",
    "errors",
    "ini",
    "parsing",
    "paths",
    "reader",
    "settings",
]
