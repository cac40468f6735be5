"""Rich presenters for run output."""
