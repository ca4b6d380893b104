"""Ideaboard core: record store, edit buffer, ranking, diagnostics, portfolio."""
