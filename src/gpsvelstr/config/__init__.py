"""Parameter schema package."""
