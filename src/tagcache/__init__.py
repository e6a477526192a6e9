"""tagcache: tagged cache-aside layer for CMS repositories.

Wraps entry, global variable and fieldset accessors with read-through
caching and invalidates by tag (or exact key) when records change.
"""

__version__ = "0.1.0"
