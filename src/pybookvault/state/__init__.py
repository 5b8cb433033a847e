"""State/cache layer.

This package is the single source of truth for cached query results and
for how speculative mutations are applied, confirmed, or rolled back.
"""
