"""Click commands of the bronze-ingest CLI."""
