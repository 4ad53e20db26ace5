"""Core storage and credential components."""
