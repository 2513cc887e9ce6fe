"""Browse, search and summarise Claude Code chat transcripts."""

__version__ = "0.1.0"
