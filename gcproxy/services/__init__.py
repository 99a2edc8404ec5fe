"""Services behind the API layer: image fetching, the model client, orchestration."""
