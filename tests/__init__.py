"""
Test suite for the asset reconciliation service.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_similarity_service.py -v
"""
