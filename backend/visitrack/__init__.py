"""Visitrack backend: OAuth sessions and visitor analytics."""
