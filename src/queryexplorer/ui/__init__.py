"""
Qt integration package.

Signal-based dispatch channel and worker threads for running queries
without blocking the event loop.
"""
