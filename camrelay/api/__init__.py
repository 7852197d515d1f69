"""HTTP API for the relay service."""
