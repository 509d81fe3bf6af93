"""ASGI plumbing: request dispatch, built-in endpoints, error mapping, sending."""
