"""
Views for chat API.

This module provides REST API endpoints for the chat system:
- GroupViewSet: Groups, their members, invitations and messages
- Direct message views: 1:1 history, send, receipts, clear, delete
- Mention views: The caller's mentions

URL Structure:
    /api/v1/chat/groups/                                 GET, POST
    /api/v1/chat/groups/name-availability/               GET
    /api/v1/chat/groups/{id}/                            GET, PATCH, DELETE
    /api/v1/chat/groups/{id}/members/                    GET, POST
    /api/v1/chat/groups/{id}/members/{user_id}/          PATCH, DELETE
    /api/v1/chat/groups/{id}/leave/                      POST
    /api/v1/chat/groups/{id}/transfer-ownership/         POST
    /api/v1/chat/groups/{id}/accept-invitation/          POST
    /api/v1/chat/groups/{id}/reject-invitation/          POST
    /api/v1/chat/groups/{id}/messages/                   GET, POST
    /api/v1/chat/groups/{id}/messages/{message_id}/      DELETE
    /api/v1/chat/groups/{id}/messages/delivered/         POST
    /api/v1/chat/groups/{id}/messages/read/              POST
    /api/v1/chat/direct/{user_id}/messages/              GET, POST
    /api/v1/chat/direct/{user_id}/delivered/             POST
    /api/v1/chat/direct/{user_id}/read/                  POST
    /api/v1/chat/direct/{user_id}/clear/                 POST
    /api/v1/chat/direct/messages/{message_id}/           DELETE
    /api/v1/chat/mentions/                               GET
    /api/v1/chat/mentions/{id}/read/                     POST

Design Decisions:
    - Views validate input and delegate every rule to the service layer
    - Failed ServiceResults map to 400/403/404 via service_error_response
    - Message history uses cursor pagination, newest first
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.pagination import (
    GroupCursorPagination,
    MentionCursorPagination,
    MessageCursorPagination,
)
from chat.serializers import (
    DirectMessageSerializer,
    GroupCreateSerializer,
    GroupDetailSerializer,
    GroupListSerializer,
    GroupMessageCreateSerializer,
    GroupMessageSerializer,
    GroupNameAvailabilitySerializer,
    GroupUpdateSerializer,
    LeaveGroupSerializer,
    MemberAddSerializer,
    MemberRoleSerializer,
    MemberSerializer,
    MentionSerializer,
    MessageCreateSerializer,
    MessageDeleteResultSerializer,
    ReceiptResultSerializer,
    TransferOwnershipSerializer,
)
from chat.services import (
    DirectMessageService,
    GroupMessageService,
    GroupService,
    MembershipService,
    MentionService,
)
from core.views import UUID_PATTERN, service_error_response

TRUTHY = ("1", "true", "yes")


def paginated_response(paginator, queryset, request, view, serializer_class):
    page = paginator.paginate_queryset(queryset, request, view=view)
    if page is not None:
        return paginator.get_paginated_response(serializer_class(page, many=True).data)
    return Response(serializer_class(queryset, many=True).data)


# =============================================================================
# Groups
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_groups",
        summary="List my groups",
        responses={200: GroupListSerializer(many=True)},
        tags=["Chat - Groups"],
    ),
    create=extend_schema(
        operation_id="create_group",
        summary="Create group",
        request=GroupCreateSerializer,
        responses={201: GroupDetailSerializer},
        tags=["Chat - Groups"],
    ),
    retrieve=extend_schema(
        operation_id="get_group",
        summary="Get group info",
        responses={200: GroupDetailSerializer},
        tags=["Chat - Groups"],
    ),
    partial_update=extend_schema(
        operation_id="update_group",
        summary="Update group",
        request=GroupUpdateSerializer,
        responses={200: GroupDetailSerializer},
        tags=["Chat - Groups"],
    ),
    destroy=extend_schema(
        operation_id="delete_group",
        summary="Delete group",
        tags=["Chat - Groups"],
    ),
)
class GroupViewSet(viewsets.GenericViewSet):
    """
    ViewSet for groups.

    list:
        Groups the current user belongs to, with member counts.

    create:
        Create a group; the creator becomes its owner and first admin.

    retrieve:
        Group info for members (member count, owner name, own role).

    partial_update:
        Rename or describe the group. Any member may do this.

    destroy:
        Delete the group. Owner only.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = GroupCursorPagination
    serializer_class = GroupListSerializer
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        return GroupService.list_user_groups(self.request.user)

    def list(self, request):
        return paginated_response(
            self.paginator, self.get_queryset(), request, self, GroupListSerializer
        )

    def create(self, request):
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.create_group(
            name=serializer.validated_data["name"],
            creator=request.user,
            description=serializer.validated_data.get("description", ""),
            avatar_url=serializer.validated_data.get("avatar_url"),
        )
        if not result.success:
            return service_error_response(result)

        info = GroupService.get_group_info(group_id=result.data.pk, user=request.user)
        return Response(GroupDetailSerializer(info.data).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        result = GroupService.get_group_info(group_id=pk, user=request.user)
        if not result.success:
            return service_error_response(result)
        return Response(GroupDetailSerializer(result.data).data)

    def partial_update(self, request, pk=None):
        serializer = GroupUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.update_group(group_id=pk, user=request.user, **serializer.validated_data)
        if not result.success:
            return service_error_response(result)

        info = GroupService.get_group_info(group_id=pk, user=request.user)
        return Response(GroupDetailSerializer(info.data).data)

    def destroy(self, request, pk=None):
        result = GroupService.delete_group(group_id=pk, user=request.user)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="check_group_name_availability",
        summary="Check group name availability",
        parameters=[
            OpenApiParameter(
                name="name",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Group name to check (case-insensitive)",
                required=True,
            ),
        ],
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Groups"],
    )
    @action(detail=False, methods=["get"], url_path="name-availability")
    def name_availability(self, request):
        serializer = GroupNameAvailabilitySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        name = serializer.validated_data["name"]
        return Response(
            {"name": name, "available": GroupService.check_group_name_availability(name)}
        )

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    @extend_schema(
        methods=["GET"],
        operation_id="list_group_members",
        summary="List group members",
        responses={200: MemberSerializer(many=True)},
        tags=["Chat - Members"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="add_group_member",
        summary="Add or invite a user by email",
        description=(
            "Users connected to the caller are added immediately. Anyone else "
            "receives an invitation they must accept."
        ),
        request=MemberAddSerializer,
        responses={
            201: OpenApiResponse(description="User added"),
            202: OpenApiResponse(description="Invitation sent"),
            404: OpenApiResponse(description="Group or user not found"),
        },
        tags=["Chat - Members"],
    )
    @action(detail=True, methods=["get", "post"])
    def members(self, request, pk=None):
        if request.method == "GET":
            result = MembershipService.list_members(group_id=pk, user=request.user)
            if not result.success:
                return service_error_response(result)
            return Response(MemberSerializer(result.data, many=True).data)

        serializer = MemberAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MembershipService.add_user_to_group_with_check(
            group_id=pk,
            target_email=serializer.validated_data["email"],
            user=request.user,
        )
        if not result.success:
            return service_error_response(result)

        member = result.data["member"]
        body = {
            "auto_added": result.data["auto_added"],
            "requires_acceptance": result.data["requires_acceptance"],
            "member": MemberSerializer(member).data if member else None,
        }
        return Response(
            body,
            status=status.HTTP_201_CREATED if member else status.HTTP_202_ACCEPTED,
        )

    @extend_schema(
        methods=["PATCH"],
        operation_id="change_member_role",
        summary="Change member role",
        request=MemberRoleSerializer,
        responses={200: MemberSerializer},
        tags=["Chat - Members"],
    )
    @extend_schema(
        methods=["DELETE"],
        operation_id="remove_group_member",
        summary="Remove member",
        tags=["Chat - Members"],
    )
    @action(detail=True, methods=["patch", "delete"], url_path=r"members/(?P<user_id>\d+)")
    def member_detail(self, request, pk=None, user_id=None):
        if request.method == "DELETE":
            result = MembershipService.remove_member(
                group_id=pk, user=request.user, target_user_id=int(user_id)
            )
            if not result.success:
                return service_error_response(result)
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = MemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MembershipService.change_role(
            group_id=pk,
            user=request.user,
            target_user_id=int(user_id),
            role=serializer.validated_data["role"],
        )
        if not result.success:
            return service_error_response(result)
        return Response(MemberSerializer(result.data).data)

    @extend_schema(
        operation_id="leave_group",
        summary="Leave group",
        description=(
            "Owners and admins may nominate a successor. When the last member "
            "leaves the group is deleted."
        ),
        request=LeaveGroupSerializer,
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Members"],
    )
    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        serializer = LeaveGroupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MembershipService.leave_group(
            group_id=pk,
            user=request.user,
            successor_id=serializer.validated_data.get("successor_id"),
        )
        if not result.success:
            return service_error_response(result)
        return Response(result.data)

    @extend_schema(
        operation_id="transfer_group_ownership",
        summary="Transfer group ownership",
        request=TransferOwnershipSerializer,
        responses={200: GroupDetailSerializer},
        tags=["Chat - Members"],
    )
    @action(detail=True, methods=["post"], url_path="transfer-ownership")
    def transfer_ownership(self, request, pk=None):
        serializer = TransferOwnershipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.transfer_admin(
            group_id=pk,
            user=request.user,
            new_owner_id=serializer.validated_data["user_id"],
        )
        if not result.success:
            return service_error_response(result)

        info = GroupService.get_group_info(group_id=pk, user=request.user)
        return Response(GroupDetailSerializer(info.data).data)

    @extend_schema(
        operation_id="accept_group_invitation",
        summary="Accept group invitation",
        request=None,
        responses={200: MemberSerializer},
        tags=["Chat - Members"],
    )
    @action(detail=True, methods=["post"], url_path="accept-invitation")
    def accept_invitation(self, request, pk=None):
        result = MembershipService.accept_group_invitation(group_id=pk, user=request.user)
        if not result.success:
            return service_error_response(result)
        return Response(MemberSerializer(result.data).data)

    @extend_schema(
        operation_id="reject_group_invitation",
        summary="Reject group invitation",
        request=None,
        responses={204: None},
        tags=["Chat - Members"],
    )
    @action(detail=True, methods=["post"], url_path="reject-invitation")
    def reject_invitation(self, request, pk=None):
        result = MembershipService.reject_group_invitation(group_id=pk, user=request.user)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    @extend_schema(
        methods=["GET"],
        operation_id="list_group_messages",
        summary="List group messages",
        responses={200: GroupMessageSerializer(many=True)},
        tags=["Chat - Group Messages"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="send_group_message",
        summary="Send group message",
        description=(
            "Mentioned ids are validated against the current members. Omit "
            "mentioned_user_ids to resolve @tokens from the content."
        ),
        request=GroupMessageCreateSerializer,
        responses={201: GroupMessageSerializer},
        tags=["Chat - Group Messages"],
    )
    @action(detail=True, methods=["get", "post"])
    def messages(self, request, pk=None):
        if request.method == "GET":
            result = GroupMessageService.get_group_messages(group_id=pk, user=request.user)
            if not result.success:
                return service_error_response(result)
            return paginated_response(
                MessageCursorPagination(), result.data, request, self, GroupMessageSerializer
            )

        serializer = GroupMessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupMessageService.send_group_message_with_mentions(
            group_id=pk, user=request.user, **serializer.validated_data
        )
        if not result.success:
            return service_error_response(result)
        return Response(GroupMessageSerializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="delete_group_message",
        summary="Delete group message",
        description=(
            "With for_everyone=true the sender retracts the message for all "
            "members within the grace window; otherwise, or later, the message "
            "is hidden for the caller only."
        ),
        parameters=[
            OpenApiParameter(
                name="for_everyone",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
            ),
        ],
        responses={200: MessageDeleteResultSerializer},
        tags=["Chat - Group Messages"],
    )
    @action(
        detail=True,
        methods=["delete"],
        url_path=rf"messages/(?P<message_id>{UUID_PATTERN})",
    )
    def message_detail(self, request, pk=None, message_id=None):
        if request.query_params.get("for_everyone", "").lower() in TRUTHY:
            delete = GroupMessageService.delete_group_message_for_everyone
        else:
            delete = GroupMessageService.delete_group_message_for_user
        result = delete(message_id, request.user, group_id=pk)

        if not result.success:
            return service_error_response(result)
        return Response(result.data)

    @extend_schema(
        operation_id="mark_group_messages_delivered",
        summary="Mark group messages delivered",
        request=None,
        responses={200: ReceiptResultSerializer},
        tags=["Chat - Group Messages"],
    )
    @action(detail=True, methods=["post"], url_path="messages/delivered")
    def messages_delivered(self, request, pk=None):
        result = GroupMessageService.mark_group_messages_delivered(group_id=pk, user=request.user)
        if not result.success:
            return service_error_response(result)
        return Response({"updated": result.data})

    @extend_schema(
        operation_id="mark_group_messages_read",
        summary="Mark group messages read",
        request=None,
        responses={200: ReceiptResultSerializer},
        tags=["Chat - Group Messages"],
    )
    @action(detail=True, methods=["post"], url_path="messages/read")
    def messages_read(self, request, pk=None):
        result = GroupMessageService.mark_group_messages_read(group_id=pk, user=request.user)
        if not result.success:
            return service_error_response(result)
        return Response({"updated": result.data})


# =============================================================================
# Direct messages
# =============================================================================


class DirectConversationView(APIView):
    """
    GET: Messages exchanged with another user, visible to the caller
    POST: Send a message to that user

    URL: /api/v1/chat/direct/{user_id}/messages/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_direct_messages",
        summary="List direct messages",
        responses={200: DirectMessageSerializer(many=True)},
        tags=["Chat - Direct Messages"],
    )
    def get(self, request, user_id):
        queryset = DirectMessageService.get_conversation(request.user, user_id)
        return paginated_response(
            MessageCursorPagination(), queryset, request, self, DirectMessageSerializer
        )

    @extend_schema(
        operation_id="send_direct_message",
        summary="Send direct message",
        request=MessageCreateSerializer,
        responses={201: DirectMessageSerializer},
        tags=["Chat - Direct Messages"],
    )
    def post(self, request, user_id):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = DirectMessageService.send_message(
            sender=request.user, receiver_id=user_id, **serializer.validated_data
        )
        if not result.success:
            return service_error_response(result)
        return Response(DirectMessageSerializer(result.data).data, status=status.HTTP_201_CREATED)


class DirectDeliveredView(APIView):
    """POST: Acknowledge delivery of the other user's messages."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="mark_direct_messages_delivered",
        summary="Mark direct messages delivered",
        request=None,
        responses={200: ReceiptResultSerializer},
        tags=["Chat - Direct Messages"],
    )
    def post(self, request, user_id):
        count = DirectMessageService.mark_messages_delivered(request.user, user_id)
        return Response({"updated": count})


class DirectReadView(APIView):
    """POST: Mark the other user's messages read."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="mark_direct_messages_read",
        summary="Mark direct messages read",
        request=None,
        responses={200: ReceiptResultSerializer},
        tags=["Chat - Direct Messages"],
    )
    def post(self, request, user_id):
        count = DirectMessageService.mark_messages_read(request.user, user_id)
        return Response({"updated": count})


class DirectClearView(APIView):
    """POST: Hide the whole conversation for the caller only."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="clear_direct_conversation",
        summary="Clear direct conversation",
        request=None,
        responses={200: ReceiptResultSerializer},
        tags=["Chat - Direct Messages"],
    )
    def post(self, request, user_id):
        count = DirectMessageService.clear_conversation_for_user(request.user, user_id)
        return Response({"updated": count})


class DirectMessageDetailView(APIView):
    """
    DELETE: Delete a direct message for me, or for everyone with
    ?for_everyone=true (sender only, within the grace window).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="delete_direct_message",
        summary="Delete direct message",
        parameters=[
            OpenApiParameter(
                name="for_everyone",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
            ),
        ],
        responses={200: MessageDeleteResultSerializer},
        tags=["Chat - Direct Messages"],
    )
    def delete(self, request, message_id):
        result = DirectMessageService.delete_message_for_user(
            message_id,
            request.user,
            for_everyone=request.query_params.get("for_everyone", "").lower() in TRUTHY,
        )
        if not result.success:
            return service_error_response(result)
        return Response(result.data)


# =============================================================================
# Mentions
# =============================================================================


@extend_schema_view(
    get=extend_schema(
        operation_id="list_mentions",
        summary="List my mentions",
        parameters=[
            OpenApiParameter(
                name="unread",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
            ),
        ],
        tags=["Chat - Mentions"],
    ),
)
class MentionListView(generics.ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = MentionSerializer
    pagination_class = MentionCursorPagination

    def get_queryset(self):
        return MentionService.list_mentions(
            self.request.user,
            unread_only=self.request.query_params.get("unread", "").lower() in TRUTHY,
        )


class MentionReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="mark_mention_read",
        summary="Mark mention read",
        request=None,
        responses={200: MentionSerializer},
        tags=["Chat - Mentions"],
    )
    def post(self, request, mention_id):
        result = MentionService.mark_mention_read(mention_id, request.user)
        if not result.success:
            return service_error_response(result)
        return Response(MentionSerializer(result.data).data)
