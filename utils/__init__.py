"""Shared helpers (logging) for the weather dashboard."""
