"""Domain layer for bronze ingest.

Entities and pure services: sniffing, column mapping, value conversion and
schema merging. Nothing here performs I/O.
"""
