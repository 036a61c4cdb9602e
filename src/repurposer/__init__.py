"""Content repurposing service: YouTube sources in, token-metered AI content out."""

__version__ = "0.1.0"
