"""
FastAPI application for the spare parts catalog import.

This package contains the REST API for previewing and importing spare part
workbooks, browsing the catalog and tracking background import jobs.
"""

__version__ = "1.0.0"
