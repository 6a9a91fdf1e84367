"""Context-aware prompt generation service for the CRAC monorepo."""

__version__ = "1.0.0"
