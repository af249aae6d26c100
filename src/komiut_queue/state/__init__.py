"""State layer.

This package is the single place where decoded queue events, transport
connection signals and user selection actions are merged into a
per-route :class:`~komiut_queue.models.state.QueueState`.
"""
