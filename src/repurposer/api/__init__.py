"""HTTP API for the content repurposer."""
