# backend/tests/routes/v1/test_booking_routes_v1.py
"""
Booking endpoints under /api/v1/bookings.

Covers the conflict responses clients rely on (409 SLOT_TAKEN, 404
SLOT_NOT_FOUND), lifecycle PATCHes and the visibility rules.
"""

from fastapi.testclient import TestClient
import pytest

BOOKINGS = "/api/v1/bookings"


def _booking_body(trip_id: str, **overrides) -> dict:
    body = {
        "tripId": trip_id,
        "date": "2025-06-15",
        "time": "09:00",
        "contactPhone": "+962 79 123 4567",
        "contactEmail": "tourist@example.com",
    }
    body.update(overrides)
    return body


@pytest.fixture
def booking_id(client: TestClient, petra_trip, auth_headers_tourist) -> str:
    response = client.post(BOOKINGS, json=_booking_body(petra_trip.id), headers=auth_headers_tourist)
    assert response.status_code == 201
    return response.json()["id"]


class TestCreateBooking:
    def test_tourist_books_slot(self, client, petra_trip, tourist, guide, auth_headers_tourist):
        response = client.post(
            BOOKINGS,
            json=_booking_body(petra_trip.id, note="  Two adults  "),
            headers=auth_headers_tourist,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["touristId"] == tourist.id
        assert body["guideId"] == guide.id
        assert body["date"] == "2025-06-15"
        assert body["time"] == "09:00"
        assert body["tripTitle"] == "Petra Day Tour"
        assert body["note"] == "Two adults"

        slot = client.get(f"/api/v1/trips/{petra_trip.id}/schedule").json()[0]
        assert slot["isAvailable"] is False

    def test_second_booking_same_instant_is_taken(
        self, client, petra_trip, booking_id, auth_headers_other_tourist
    ):
        response = client.post(
            BOOKINGS, json=_booking_body(petra_trip.id), headers=auth_headers_other_tourist
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "SLOT_TAKEN"
        assert body["details"]["reason"] == "active_booking"

    def test_same_guide_other_trip_is_taken(
        self, client, trip_factory, guide, booking_id, auth_headers_other_tourist
    ):
        wadi_rum = trip_factory(guide.id, title="Wadi Rum Jeep Tour", city="Wadi Rum")

        response = client.post(
            BOOKINGS, json=_booking_body(wadi_rum.id), headers=auth_headers_other_tourist
        )

        assert response.status_code == 409
        assert response.json()["code"] == "SLOT_TAKEN"

    def test_time_not_offered(self, client, petra_trip, auth_headers_tourist):
        response = client.post(
            BOOKINGS, json=_booking_body(petra_trip.id, time="10:00"), headers=auth_headers_tourist
        )

        assert response.status_code == 404
        assert response.json()["code"] == "SLOT_NOT_FOUND"

    @pytest.mark.parametrize(
        "overrides",
        [{"contactEmail": "not-an-email"}, {"contactPhone": "call me"}, {"time": "9am"}],
    )
    def test_bad_request_body(self, client, petra_trip, auth_headers_tourist, overrides):
        response = client.post(
            BOOKINGS, json=_booking_body(petra_trip.id, **overrides), headers=auth_headers_tourist
        )

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["details"]["errors"]

    def test_guide_cannot_book(self, client, petra_trip, auth_headers_guide):
        response = client.post(BOOKINGS, json=_booking_body(petra_trip.id), headers=auth_headers_guide)

        assert response.status_code == 403


class TestStatusChanges:
    def test_guide_confirms(self, client, booking_id, auth_headers_guide):
        response = client.patch(
            f"{BOOKINGS}/{booking_id}", json={"status": "confirmed"}, headers=auth_headers_guide
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["confirmedAt"] is not None

    def test_tourist_cannot_confirm(self, client, booking_id, auth_headers_tourist):
        response = client.patch(
            f"{BOOKINGS}/{booking_id}", json={"status": "confirmed"}, headers=auth_headers_tourist
        )

        assert response.status_code == 403
        assert response.json()["code"] == "NOT_AUTHORIZED"

    def test_pending_cannot_complete(self, client, booking_id, auth_headers_guide):
        response = client.patch(
            f"{BOOKINGS}/{booking_id}", json={"status": "completed"}, headers=auth_headers_guide
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "ILLEGAL_TRANSITION"
        assert body["details"] == {"current_status": "pending", "requested_status": "completed"}

    def test_tourist_cancels_and_slot_reopens(
        self, client, petra_trip, booking_id, auth_headers_tourist
    ):
        response = client.patch(
            f"{BOOKINGS}/{booking_id}",
            json={"status": "canceled", "reason": "Flight moved"},
            headers=auth_headers_tourist,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "canceled"
        assert body["cancellationReason"] == "Flight moved"
        slot = client.get(f"/api/v1/trips/{petra_trip.id}/schedule").json()[0]
        assert slot["isAvailable"] is True

    def test_unknown_status_value(self, client, booking_id, auth_headers_guide):
        response = client.patch(
            f"{BOOKINGS}/{booking_id}", json={"status": "refunded"}, headers=auth_headers_guide
        )

        assert response.status_code == 422


class TestVisibility:
    def test_parties_can_read(self, client, booking_id, auth_headers_tourist, auth_headers_guide, auth_headers_admin):
        for headers in (auth_headers_tourist, auth_headers_guide, auth_headers_admin):
            response = client.get(f"{BOOKINGS}/{booking_id}", headers=headers)
            assert response.status_code == 200
            assert response.json()["id"] == booking_id

    def test_stranger_and_missing_booking_look_the_same(
        self, client, booking_id, auth_headers_other_tourist, auth_headers_other_guide
    ):
        stranger = client.get(f"{BOOKINGS}/{booking_id}", headers=auth_headers_other_tourist)
        other_guide = client.get(f"{BOOKINGS}/{booking_id}", headers=auth_headers_other_guide)
        missing = client.get(f"{BOOKINGS}/01MISSINGBOOKING0000000000", headers=auth_headers_other_tourist)

        for response in (stranger, other_guide, missing):
            assert response.status_code == 403
        assert stranger.json()["code"] == missing.json()["code"] == "NOT_AUTHORIZED"
        assert stranger.json()["detail"] == missing.json()["detail"]
        assert "details" not in missing.json()

    def test_list_is_scoped_to_the_caller(
        self, client, booking_id, auth_headers_tourist, auth_headers_guide, auth_headers_other_tourist
    ):
        mine = client.get(BOOKINGS, headers=auth_headers_tourist).json()
        guide_view = client.get(BOOKINGS, headers=auth_headers_guide).json()
        theirs = client.get(BOOKINGS, headers=auth_headers_other_tourist).json()

        assert [b["id"] for b in mine["items"]] == [booking_id]
        assert mine["total"] == 1
        assert [b["id"] for b in guide_view["items"]] == [booking_id]
        assert theirs == {"items": [], "total": 0}

    def test_list_status_filter(self, client, booking_id, auth_headers_tourist):
        pending = client.get(BOOKINGS, params={"status": "pending"}, headers=auth_headers_tourist)
        confirmed = client.get(BOOKINGS, params={"status": "confirmed"}, headers=auth_headers_tourist)

        assert pending.json()["total"] == 1
        assert confirmed.json()["total"] == 0

    def test_history(self, client, booking_id, auth_headers_guide, tourist, guide):
        client.patch(f"{BOOKINGS}/{booking_id}", json={"status": "confirmed"}, headers=auth_headers_guide)

        response = client.get(f"{BOOKINGS}/{booking_id}/history", headers=auth_headers_guide)

        assert response.status_code == 200
        trail = {(e["fromStatus"], e["toStatus"], e["actorId"]) for e in response.json()}
        assert trail == {
            (None, "pending", tourist.id),
            ("pending", "confirmed", guide.id),
        }

    def test_history_hidden_from_strangers(self, client, booking_id, auth_headers_other_guide):
        response = client.get(f"{BOOKINGS}/{booking_id}/history", headers=auth_headers_other_guide)

        assert response.status_code == 403
