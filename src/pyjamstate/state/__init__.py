"""Snapshot layer.

Raw states enter the library here: documents are parsed into immutable
:class:`StateSnapshot` objects, and services are read back out of them.
"""
