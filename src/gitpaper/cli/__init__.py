"""Command line interface for gitpaper."""
