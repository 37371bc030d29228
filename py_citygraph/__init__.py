"""
py-citygraph: procedural city layouts from a terrain outline.
"""

__version__ = "0.1.0"
