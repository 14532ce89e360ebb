"""Generate Kotlin data-model types based on a FHIR schema."""

# Please keep in sync with setup.py
__version__ = "0.0.1"
__author__ = "Articulus"
__license__ = "License :: OSI Approved :: MIT License"
__status__ = "Alpha"
