"""Window store adapters for the contact rate limiter.

The limiter talks to a ``WindowStore``; which concrete store backs it is
decided once at startup from the bound handles:

- ``KVWindowStore``: expiring-key cache (read then write, keeping the window expiry)
- ``RelationalWindowStore``: SQL table updated with one conditional upsert
- ``None``: nothing bound, the limiter fails open
"""
