"""Typer application for battery-bench."""
