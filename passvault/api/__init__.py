"""HTTP adapter for passvault."""
