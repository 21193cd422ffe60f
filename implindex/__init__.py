"""implindex — load-order-independent registry of trait implementors.

Collects per-library implementor shards into one readable index,
whether the shards load before or after the index host is ready.
"""

__version__ = "0.1.0"
