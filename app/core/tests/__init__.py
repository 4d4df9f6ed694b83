"""
Tests for core app.

This package contains test modules for:
- test_services.py: ServiceResult and BaseService
- test_views.py: Error response mapping, health check and API schema
- test_realtime.py: Channel-layer publishing helpers
"""
