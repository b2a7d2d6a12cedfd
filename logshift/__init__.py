"""logshift - zap to zerolog codemod for Go sources."""

__version__ = "0.3.0"
