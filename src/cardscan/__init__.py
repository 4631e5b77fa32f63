"""
cardscan - Business card contact extraction

Reads a structured contact record from a photographed business card using
a vision model, OCR plus a text model, and a rule-based fallback.
"""

__version__ = "0.1.0"
