"""
storefront/storage
------------------
Per-shopper durable key-value store (the server-side stand-in for a
browser's localStorage).
"""
