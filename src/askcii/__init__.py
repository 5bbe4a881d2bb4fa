"""askcii: ask a language model from the terminal."""

__version__ = "0.2.0"
