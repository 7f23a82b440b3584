"""HTTP API for the listing search engine."""
