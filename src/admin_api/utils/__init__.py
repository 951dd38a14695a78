"""Internal helpers for the admin API package."""
