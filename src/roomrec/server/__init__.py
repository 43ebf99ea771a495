"""HTTP server for roomrec."""
