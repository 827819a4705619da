"""Command-line interface for MiniGit."""
