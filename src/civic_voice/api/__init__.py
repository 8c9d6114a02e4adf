"""HTTP API for Civic Voice."""
