"""
Serving — FastAPI application for document lookup.

Stands in for the chat front-end: one endpoint replaces the active
document, another answers questions against it.
"""
