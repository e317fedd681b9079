"""
Common Utilities

Shared infrastructure for the progression and recommendation packages:
logging, exceptions, serialization, configuration and storage.
"""
