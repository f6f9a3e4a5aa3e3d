"""Auth: tokens, password hashing, the request gate, and signup/login."""
