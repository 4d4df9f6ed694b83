"""
Authentication application.

Identity and profile store: email-based users, their display profile and
presence.

Key components:
    - User model: Custom email-based user
    - Profile model: display name, avatar, presence status
    - ProfileService: profile bootstrap, upsert and inactive-account cleanup
    - PresenceService: status changes and heartbeats

Usage:
    from authentication.models import User, Profile
    from authentication.services import ProfileService, PresenceService
"""
