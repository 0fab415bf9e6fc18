"""
Package initialization for the veterinary DICOM case-bundle service.

This file marks the directory as a Python package and exposes the package
version used by the FastAPI application metadata.
"""

# Version of the application
__version__ = "0.1.0"
