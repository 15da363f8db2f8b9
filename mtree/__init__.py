"""Parse, write and compare mtree directory hierarchy manifests."""

__version__ = "0.1.0"

__all__ = [
    "cksum",
    "compare",
    "entry",
    "fseval",
    "hierarchy",
    "keywordfuncs",
    "keywords",
    "parse",
    "report",
]