"""
OpenAPI schema customizations for drf-spectacular.

Tag naming follows the pattern: [App Name] - [Group Name]
Examples:
- Auth (registration, tokens)
- Auth - Profile (own profile, presence)
- Chat - Groups / Chat - Members / Chat - Group Messages
- Chat - Direct Messages / Chat - Mentions
- Connections
- Notifications
"""

# Natural language summaries for the stock simplejwt endpoints, which
# carry no @extend_schema of their own.
TOKEN_ENDPOINT_SUMMARIES = {
    "auth_token_create": (
        "Log in",
        "Authenticate with email and password to receive JWT tokens.",
    ),
    "auth_token_refresh_create": (
        "Refresh access token",
        "Get a new access token using a valid refresh token.",
    ),
    "auth_token_blacklist_create": (
        "Log out",
        "Blacklist the given refresh token.",
    ),
}

TAG_DESCRIPTIONS = [
    {
        "name": "Auth",
        "description": "Registration and JWT token management.",
    },
    {
        "name": "Auth - Profile",
        "description": "Own profile details and presence status.",
    },
    {
        "name": "Connections",
        "description": "Contact requests between users and their responses.",
    },
    {
        "name": "Chat - Groups",
        "description": "Group creation, info, rename, ownership and invitations.",
    },
    {
        "name": "Chat - Members",
        "description": "Group roster, adding, removing and promoting members.",
    },
    {
        "name": "Chat - Group Messages",
        "description": "Group messages with mentions, receipts and deletion.",
    },
    {
        "name": "Chat - Direct Messages",
        "description": "One-to-one messages, receipts, deletion and clearing.",
    },
    {
        "name": "Chat - Mentions",
        "description": "Mentions of the current user in group messages.",
    },
    {
        "name": "Notifications",
        "description": "Derived notifications and their read state.",
    },
]


def tag_api_endpoints(result, generator, request, public):
    """
    Postprocessing hook that fills in tags and summaries.

    Views set their tags through @extend_schema; this hook only covers the
    token endpoints that come straight from simplejwt, then attaches the
    tag descriptions shown in Swagger/ReDoc.
    """
    paths = result.get("paths", {})

    for path, methods in paths.items():
        for method, operation in methods.items():
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId", "")

            if operation_id in TOKEN_ENDPOINT_SUMMARIES:
                summary, description = TOKEN_ENDPOINT_SUMMARIES[operation_id]
                operation["summary"] = summary
                operation["description"] = description
                operation["tags"] = ["Auth"]

    result["tags"] = TAG_DESCRIPTIONS

    return result
