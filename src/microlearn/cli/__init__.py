"""Command-line interface for the microlearning platform."""
