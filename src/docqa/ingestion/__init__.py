"""
Ingestion — text extraction, chunking, and embedding.

This module turns uploaded files (PDF, TXT, DOCX) into ordered,
overlapping chunks and converts chunk text into vectors for the
retrieval index.
"""
