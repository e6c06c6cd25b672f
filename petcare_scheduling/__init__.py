"""Appointment scheduling core for the pet-care marketplace."""

__version__ = "0.1.0"
