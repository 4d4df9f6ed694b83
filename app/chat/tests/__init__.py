"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Group, Member, message and mention models
- test_authorization.py: GroupAuthorization rules and require_group_member
- test_mentions.py: @mention parsing and mention fan-out
- test_services.py: Group, membership, direct/group message and retention services
- test_signals.py: Group handover when an account is deleted
- test_tasks.py: Retention sweep task and its beat schedule
- test_views.py: API endpoint tests
- test_consumers.py: WebSocket consumer and JWT middleware

Usage:
    pytest chat/tests/
    pytest chat/tests/test_services.py
"""
