"""passvault — self-hosted credential vault with field-level encryption."""

__version__ = "0.1.0"
