"""Ingestion layer.

This package turns transport frames into typed queue events and folds
frame/connection-signal streams into a :class:`~komiut_queue.state.store.QueueStore`.
"""

__all__: list[str] = []
