"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager tests
- test_models.py: User and Profile model tests
- test_services.py: ProfileService and PresenceService tests
- test_signals.py: Profile bootstrap signal tests
- test_tasks.py: Inactive-account cleanup task tests
- test_views.py: API endpoint tests

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_services.py
"""
