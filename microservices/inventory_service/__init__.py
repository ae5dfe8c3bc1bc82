"""
Inventory Service

Stock ledger with optimistic concurrency control, TTL-bound reservations,
a cache-aside read path and a background expiration sweep.
"""
