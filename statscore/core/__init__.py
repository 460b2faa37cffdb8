"""Core stats, metrics and export components."""
