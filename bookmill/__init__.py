"""Book configuration, include-directive expansion and preprocessor support for markdown books."""

__version__ = "0.1.0"
__all__ = ["config", "settings", "linkparse", "links", "preprocess"]