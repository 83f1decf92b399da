# ABOUTME: MoonSync syncs Moon+ Reader highlights and reading progress into Markdown notes.
# ABOUTME: Package root; exposes the distribution version.

__version__ = "0.1.0"
