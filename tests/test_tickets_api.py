"""Tests for the /api/tickets routes."""
import pytest

from dormfix.schemas.ticket import Category, Classification, Severity
from dormfix.services.classifier import FALLBACK_SUMMARY

PHOTO = ("photo.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")


def create_ticket(client, building="Yates Hall", room="305", images=1, **fields):
    data = {"building": building, "room": room, **fields}
    files = [("images", PHOTO) for _ in range(images)]
    return client.post("/api/tickets", data=data, files=files)


@pytest.fixture
def ticket(client):
    response = create_ticket(client, userNote="Water under the sink")
    assert response.status_code == 201
    return response.json()["ticket"]


class TestCreateTicket:
    def test_classified_ticket(self, client, classifier):
        classifier.error = None
        classifier.result = Classification(category="Plumbing", severity="High", summary="Leaking pipe")

        response = create_ticket(client)

        assert response.status_code == 201
        ticket = response.json()["ticket"]
        assert ticket["category"] == "Plumbing"
        assert ticket["severity"] == "High"
        assert ticket["aiSummary"] == "Leaking pipe"
        assert ticket["status"] == "NEW"
        assert ticket["building"] == "Yates Hall"
        assert ticket["room"] == "305"

    def test_initial_history_entry(self, ticket):
        assert len(ticket["imageUrls"]) == 1
        assert len(ticket["statusHistory"]) == 1
        first = ticket["statusHistory"][0]
        assert first["status"] == "NEW"
        assert first["note"] == "Ticket created"
        assert ticket["afterImageUrls"] == []

    def test_classifier_failure_still_creates_ticket(self, client, classifier):
        response = create_ticket(client, userNote="Door hinge broken")

        assert response.status_code == 201
        ticket = response.json()["ticket"]
        assert ticket["category"] == Category.OTHER.value
        assert ticket["severity"] == Severity.LOW.value
        assert ticket["aiSummary"] == FALLBACK_SUMMARY
        assert ticket["safetyNotes"] == []
        assert ticket["facilitiesDescription"] == (
            "Maintenance issue reported in Yates Hall, Room 305. Door hinge broken"
        )
        assert len(classifier.calls) == 1

    def test_classifier_sees_first_image(self, client, classifier):
        response = create_ticket(client, images=3)

        assert response.status_code == 201
        urls = response.json()["ticket"]["imageUrls"]
        assert len(urls) == 3
        assert classifier.calls[0]["image_url"] == urls[0]

    def test_optional_fields_are_stored(self, client):
        response = create_ticket(client, locationNotes="Bathroom", reporterName="Sam")

        ticket = response.json()["ticket"]
        assert ticket["locationNotes"] == "Bathroom"
        assert ticket["reporterName"] == "Sam"

    def test_missing_building(self, client, media):
        response = create_ticket(client, building="")

        assert response.status_code == 400
        assert response.json() == {"error": {"message": "Building and room are required"}}
        assert media.uploads == []

    def test_no_images(self, client):
        response = client.post("/api/tickets", data={"building": "Yates Hall", "room": "305"})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "At least one image is required"

    def test_six_images_rejected_before_upload(self, client, media):
        response = create_ticket(client, images=6)

        assert response.status_code == 400
        assert "maximum of 5" in response.json()["error"]["message"]
        assert media.uploads == []
        assert client.get("/api/tickets").json()["count"] == 0

    def test_non_image_rejected(self, client):
        response = client.post(
            "/api/tickets",
            data={"building": "Yates Hall", "room": "305"},
            files=[("images", ("notes.txt", b"hello", "text/plain"))],
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Only image files are allowed"

    def test_oversized_image_rejected(self, client, media, settings):
        too_big = b"\xff" * (settings.max_upload_bytes + 1)
        response = client.post(
            "/api/tickets",
            data={"building": "Yates Hall", "room": "305"},
            files=[("images", ("big.jpg", too_big, "image/jpeg"))],
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Images must be 5MB or smaller"
        assert media.uploads == []
        assert client.get("/api/tickets").json()["count"] == 0

    def test_upload_failure_aborts_creation(self, client, media, classifier):
        media.fail_on = 2

        response = create_ticket(client, images=2)

        assert response.status_code == 500
        body = response.json()["error"]
        assert body["message"] == "Image upload failed"
        assert body["details"]
        assert classifier.calls == []
        assert client.get("/api/tickets").json()["count"] == 0


class TestReadTickets:
    def test_round_trip(self, client, ticket):
        response = client.get(f"/api/tickets/{ticket['_id']}")

        assert response.status_code == 200
        fetched = response.json()["ticket"]
        for key in ("building", "room", "imageUrls", "category", "severity", "status"):
            assert fetched[key] == ticket[key]

    def test_unknown_id(self, client):
        response = client.get("/api/tickets/65f000000000000000000000")
        assert response.status_code == 404
        assert response.json() == {"error": {"message": "Ticket not found"}}

    def test_malformed_id(self, client):
        assert client.get("/api/tickets/not-an-id").status_code == 404

    def test_list_with_filters(self, client):
        create_ticket(client, building="Pearsons Hall", room="101")
        create_ticket(client, building="Pearsons Hall", room="102")
        create_ticket(client, building="Yates Hall", room="305")

        response = client.get("/api/tickets", params={"status": "NEW", "building": "Pearsons Hall"})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert {t["building"] for t in body["tickets"]} == {"Pearsons Hall"}

    def test_list_no_match(self, client, ticket):
        body = client.get("/api/tickets", params={"category": "Pest"}).json()
        assert body == {"success": True, "count": 0, "tickets": []}


class TestUpdateStatus:
    def test_json_status_update(self, client, ticket):
        response = client.patch(
            f"/api/tickets/{ticket['_id']}/status", json={"status": "IN_REVIEW", "note": "Looking into it"}
        )

        assert response.status_code == 200
        updated = response.json()["ticket"]
        assert updated["status"] == "IN_REVIEW"
        assert len(updated["statusHistory"]) == 2
        assert updated["statusHistory"][-1]["status"] == "IN_REVIEW"
        assert updated["statusHistory"][-1]["note"] == "Looking into it"

    def test_resolve_with_after_photo(self, client, ticket, media):
        response = client.patch(
            f"/api/tickets/{ticket['_id']}/status",
            data={"status": "RESOLVED", "note": "fixed"},
            files=[("afterImages", PHOTO)],
        )

        assert response.status_code == 200
        updated = response.json()["ticket"]
        assert updated["status"] == "RESOLVED"
        assert len(updated["afterImageUrls"]) == 1
        assert len(updated["statusHistory"]) == len(ticket["statusHistory"]) + 1
        assert updated["statusHistory"][-1]["status"] == "RESOLVED"
        assert len(media.uploads) == 2

    def test_photo_only_update_skips_history(self, client, ticket):
        response = client.patch(f"/api/tickets/{ticket['_id']}/status", files=[("afterImages", PHOTO)])

        updated = response.json()["ticket"]
        assert response.status_code == 200
        assert len(updated["afterImageUrls"]) == 1
        assert updated["status"] == "NEW"
        assert [e["status"] for e in updated["statusHistory"]] == ["NEW"]

    def test_unrecognized_status_is_ignored(self, client, ticket):
        response = client.patch(f"/api/tickets/{ticket['_id']}/status", json={"status": "DONE"})

        updated = response.json()["ticket"]
        assert response.status_code == 200
        assert updated["status"] == "NEW"
        assert len(updated["statusHistory"]) == 1

    @pytest.mark.parametrize("action", ["status", "resolve"])
    def test_six_after_images_rejected(self, client, ticket, media, action):
        uploads_before = len(media.uploads)

        response = client.patch(
            f"/api/tickets/{ticket['_id']}/{action}",
            data={"status": "RESOLVED"},
            files=[("afterImages", PHOTO) for _ in range(6)],
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "A maximum of 5 images is allowed"
        assert len(media.uploads) == uploads_before
        current = client.get(f"/api/tickets/{ticket['_id']}").json()["ticket"]
        assert current["status"] == "NEW"
        assert current["afterImageUrls"] == []

    def test_unknown_ticket(self, client, media):
        response = client.patch(
            "/api/tickets/65f000000000000000000000/status",
            data={"status": "RESOLVED"},
            files=[("afterImages", PHOTO)],
        )

        assert response.status_code == 404
        assert media.uploads == []

    def test_resolve_endpoint_forces_status(self, client, ticket):
        response = client.patch(
            f"/api/tickets/{ticket['_id']}/resolve",
            data={"status": "IN_PROGRESS", "note": "Replaced washer"},
            files=[("afterImages", PHOTO), ("afterImages", PHOTO)],
        )

        updated = response.json()["ticket"]
        assert response.status_code == 200
        assert updated["status"] == "RESOLVED"
        assert len(updated["afterImageUrls"]) == 2
        assert updated["statusHistory"][-1] == {
            "status": "RESOLVED",
            "timestamp": updated["statusHistory"][-1]["timestamp"],
            "note": "Replaced washer",
        }

    def test_resolve_without_photos(self, client, ticket):
        response = client.patch(f"/api/tickets/{ticket['_id']}/resolve")

        assert response.status_code == 200
        assert response.json()["ticket"]["status"] == "RESOLVED"
        assert response.json()["ticket"]["afterImageUrls"] == []


class TestDeleteTicket:
    def test_delete(self, client, ticket):
        response = client.delete(f"/api/tickets/{ticket['_id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "Ticket deleted"
        assert client.get(f"/api/tickets/{ticket['_id']}").status_code == 404

    def test_delete_unknown(self, client):
        assert client.delete("/api/tickets/65f000000000000000000000").status_code == 404
