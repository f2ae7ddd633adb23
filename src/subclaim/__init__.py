"""subclaim - one-time token reward claims gated by a YouTube subscription."""

__version__ = "0.1.0"
