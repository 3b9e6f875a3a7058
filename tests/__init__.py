"""Unit tests for the pixmap_art package."""
