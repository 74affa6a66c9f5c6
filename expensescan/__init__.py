"""Receipt image to structured expense record pipeline."""

__version__ = "0.1.0"
