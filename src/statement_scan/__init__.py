"""
Statement scan – transactions from bank app screenshots.

A vision language model reads the screenshot; this package builds the
prompt, walks the provider fallback chain, and turns the model's loose
text into normalized, deduplicated transaction records.
"""

__all__ = [
    "config",
    "logging",
    "service",
]
