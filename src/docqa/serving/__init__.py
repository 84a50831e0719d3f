"""
Serving — FastAPI application for document upload and question answering.

Run locally with ``uvicorn docqa.serving.app:app``.
"""
