"""Textual dashboard for the river."""
