"""LeetCode solution assistant: question/session sync and chat transcript rendering."""

__version__ = "0.1.0"
