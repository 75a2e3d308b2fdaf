"""HTTP API for the DTRO service."""
