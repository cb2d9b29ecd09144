"""outliner: filter query search for hierarchical note outlines."""

__version__ = "0.1.0"
