"""
api
===

FastAPI application exposing the amendflow portfolio over HTTP.
Run with ``uvicorn api.main:app --reload``.
"""
