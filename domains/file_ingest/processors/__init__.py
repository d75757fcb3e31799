"""
File Ingestion Processors

Shared processing utilities for index file ingestion:
- row_parser.py - Delimited text to headers and rows
- duplicates.py - Per-batch Envelope ID suffixes
- existence.py - Output and ingest folder collision checks
- document_builder.py - Envelope XML rendering and persistence
- relocation.py - Archiving, ingest hand-off and log cleanup
- batch.py - Batch orchestration
"""
