"""
API tests for connection endpoints.

Test Classes:
    TestConnectionList: GET /api/v1/connections/
    TestConnectionCreate: POST /api/v1/connections/
    TestPendingRequests: GET /api/v1/connections/pending/
    TestRespond: POST /api/v1/connections/{id}/respond/
    TestDestroy: DELETE /api/v1/connections/{id}/
"""

from django.urls import reverse
from rest_framework import status

from connections.models import Connection
from connections.tests.factories import AcceptedConnectionFactory, ConnectionFactory


def detail_url(connection, name="connection-detail"):
    return reverse(f"connections:{name}", kwargs={"pk": connection.pk})


class TestConnectionList:
    """Tests for GET /api/v1/connections/."""

    url = reverse("connections:connection-list")

    def test_requires_authentication(self, db, api_client):
        response = api_client.get(self.url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_lists_only_own_connections(self, requester, receiver, requester_client):
        AcceptedConnectionFactory(requester=requester, receiver=receiver)
        ConnectionFactory()

        response = requester_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 1
        result = response.data["results"][0]
        assert result["requester"]["id"] == requester.pk
        assert result["receiver"]["id"] == receiver.pk

    def test_filter_by_status(self, requester, receiver, outsider, requester_client):
        AcceptedConnectionFactory(requester=requester, receiver=receiver)
        ConnectionFactory(requester=requester, receiver=outsider)

        response = requester_client.get(self.url, {"status": "pending"})

        assert response.data["count"] == 1
        assert response.data["results"][0]["status"] == "pending"


class TestConnectionCreate:
    """Tests for POST /api/v1/connections/."""

    url = reverse("connections:connection-list")

    def test_request_by_receiver_id(self, requester, receiver, requester_client):
        response = requester_client.post(self.url, {"receiver_id": receiver.pk}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == "pending"
        assert Connection.objects.between(requester.pk, receiver.pk).exists()

    def test_request_by_email_case_insensitive(self, receiver, requester_client):
        response = requester_client.post(
            self.url, {"email": "GRACE@example.com"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["receiver"]["id"] == receiver.pk

    def test_unknown_receiver(self, requester_client):
        response = requester_client.post(self.url, {"receiver_id": 999999}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_target(self, requester_client):
        response = requester_client.post(self.url, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_self_request(self, requester, requester_client):
        response = requester_client.post(self.url, {"receiver_id": requester.pk}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "SELF_CONNECTION"

    def test_duplicate_request(self, requester, receiver, requester_client):
        ConnectionFactory(requester=requester, receiver=receiver)

        response = requester_client.post(self.url, {"receiver_id": receiver.pk}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "CONNECTION_EXISTS"


class TestPendingRequests:
    """Tests for GET /api/v1/connections/pending/."""

    def test_lists_requests_awaiting_answer(self, requester, receiver, receiver_client):
        ConnectionFactory(requester=requester, receiver=receiver)
        AcceptedConnectionFactory(receiver=receiver)

        response = receiver_client.get(reverse("connections:connection-pending"))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]["requester"]["id"] == requester.pk

    def test_sent_requests_not_listed(self, requester, receiver, requester_client):
        ConnectionFactory(requester=requester, receiver=receiver)

        response = requester_client.get(reverse("connections:connection-pending"))

        assert response.data == []


class TestRespond:
    """Tests for POST /api/v1/connections/{id}/respond/."""

    def test_receiver_accepts(self, requester, receiver, receiver_client):
        connection = ConnectionFactory(requester=requester, receiver=receiver)

        response = receiver_client.post(
            detail_url(connection, "connection-respond"), {"accept": True}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == "accepted"

    def test_requester_forbidden(self, requester, receiver, requester_client):
        connection = ConnectionFactory(requester=requester, receiver=receiver)

        response = requester_client.post(
            detail_url(connection, "connection-respond"), {"accept": True}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "NOT_RECEIVER"

    def test_already_answered(self, requester, receiver, receiver_client):
        connection = ConnectionFactory(
            requester=requester, receiver=receiver, status=Connection.Status.REJECTED
        )

        response = receiver_client.post(
            detail_url(connection, "connection-respond"), {"accept": True}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "ALREADY_RESPONDED"

    def test_accept_is_required(self, requester, receiver, receiver_client):
        connection = ConnectionFactory(requester=requester, receiver=receiver)

        response = receiver_client.post(
            detail_url(connection, "connection-respond"), {}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestDestroy:
    """Tests for DELETE /api/v1/connections/{id}/."""

    def test_party_removes(self, requester, receiver, requester_client):
        connection = AcceptedConnectionFactory(requester=requester, receiver=receiver)

        response = requester_client.delete(detail_url(connection))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Connection.objects.filter(pk=connection.pk).exists()

    def test_outsider_gets_404(self, requester, receiver, outsider_client):
        connection = AcceptedConnectionFactory(requester=requester, receiver=receiver)

        response = outsider_client.delete(detail_url(connection))

        assert response.status_code == status.HTTP_404_NOT_FOUND
