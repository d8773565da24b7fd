"""HTTP and WebSocket surface of tagresolver."""
