"""
Connections application.

Pairwise contact relationships between users with a
pending -> accepted/rejected lifecycle.

Usage:
    from connections.models import Connection
    from connections.services import ConnectionService
"""
