"""Utility modules for paths, sanitizing, artwork, PowerShell and the registry."""
