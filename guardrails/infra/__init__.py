"""Infrastructure layer: locking, subprocesses, hook I/O and API clients."""
