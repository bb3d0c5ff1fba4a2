"""Web API for the microlearning platform."""
