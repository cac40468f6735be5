"""Command-line front end for battery-bench."""
