"""
Test suite for the storefront import engine.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_import_service.py -v
"""
