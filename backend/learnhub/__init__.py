"""Application package for the learning content hub backend.

This package exposes the store, repository, service and model modules
used by the FastAPI application in `main`. Individual modules contain
the concrete implementations and documentation.
"""
