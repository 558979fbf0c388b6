"""Build-time CSS sprite generation."""

__version__ = "0.1.0"
