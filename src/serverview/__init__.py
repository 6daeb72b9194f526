"""
serverview - query and ordering engine for live server listings.

Compiles a free-text search into record matchers, layers occupancy, pin and
ping filters on top, and keeps a deterministically sorted view of a
constantly changing server collection, recomputed on change with bursts
coalesced.
"""

__version__ = "0.1.0"

from serverview.core import *  # noqa
