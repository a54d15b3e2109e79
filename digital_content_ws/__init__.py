"""
Digital Content Web Service

Resolves one digital-content record from Solr by identifier and reshapes it
into a record with one entry per repeated part, enriched with PDF status.
"""

__version__ = "1.0.0"
