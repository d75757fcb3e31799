"""
File Ingestion Domain

Monitors the input folder for DocuSign Retrieve index files:
- index.csv rows -> one Envelope XML document per Envelope ID
- Consumed index files -> timestamped copy in the processed folder
- Finished documents -> downstream ingest folder

Runs are serialized through a single worker; existence checks against the
output and ingest folders keep repeated runs idempotent.
"""

__all__ = ["collectors", "errors", "processors"]
