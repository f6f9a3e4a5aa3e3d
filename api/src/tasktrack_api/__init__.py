"""TaskTrack HTTP API."""
