"""
Blog Comments - threaded comment engine.

Comment store, tree builder, optimistic reconciler and viewer projection
for the blog platform's comment section.
"""

__version__ = "0.1.0"
