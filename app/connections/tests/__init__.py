"""
Tests for connections app.

This package contains test modules for:
- test_models.py: Connection model, canonical pair ordering, constraints
- test_services.py: ConnectionService tests
- test_views.py: API endpoint tests
"""
