"""Test fixtures for mailsort.

- backend: in-memory FastAPI fake of the mailsort backend
"""
