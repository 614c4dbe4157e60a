"""Command implementations for the dotnetkit CLI."""
