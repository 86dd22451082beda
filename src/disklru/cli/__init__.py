"""Command-line interface for inspecting and editing a disk LRU cache."""
