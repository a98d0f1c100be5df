"""HTTP transport for the sync API."""
