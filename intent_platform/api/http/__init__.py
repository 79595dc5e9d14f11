"""HTTP surface of the intent service."""
