"""Command-line interface for kpiflow."""
