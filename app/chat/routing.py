"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - The user's event stream (direct messages, groups,
               notifications, presence)

Authentication:
    JWT token should be passed as query parameter: ?token=<jwt_access_token>
    The JWTAuthMiddleware will validate the token and attach the user
    to the consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatConsumer.as_asgi()),
]
