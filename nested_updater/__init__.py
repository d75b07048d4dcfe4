"""
nested-updater

Create and update Django model instances together with their nested related
records (belongs-to, has-one, has-many, many-to-many and generic relations),
following a per-relation nesting policy.
"""

__version__ = "0.1.0"
