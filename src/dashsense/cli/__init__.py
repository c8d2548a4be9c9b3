"""Command-line interface for DashSense."""
