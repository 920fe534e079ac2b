"""HTTP API for Stella."""
