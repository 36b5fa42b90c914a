"""alloc_cleaner: validation and normalization of client / worker / task
allocation data, with rule authoring and export."""

__version__ = "0.1.0"
