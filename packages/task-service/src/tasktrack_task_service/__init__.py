"""Task Service: the /api/todos operations."""
