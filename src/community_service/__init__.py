"""Community content service: posts, comments, likes and authorship."""

__version__ = "0.1.0"
