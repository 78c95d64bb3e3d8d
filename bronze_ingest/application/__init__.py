"""Application layer for bronze ingest.

Use cases that coordinate the domain services with the ports: browsing a
single source (bounded or streaming) and exporting many sources into a
table.
"""
