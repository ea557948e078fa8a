"""LogPack: diagnostic archives for failing or selected HTTP requests."""

__version__ = "0.1.0"
