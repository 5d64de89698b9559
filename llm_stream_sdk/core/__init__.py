"""Provider-agnostic core logic for the streaming engine.

- normalization: usage, stop-reason and index normalization
"""

__all__ = []
