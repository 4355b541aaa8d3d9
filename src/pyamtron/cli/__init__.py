"""Command-line entry points for pyamtron."""
