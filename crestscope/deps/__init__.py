"""System dependency detection and installation."""
