"""Tests for payload normalization into canonical models."""

import pytest
from pydantic import ValidationError

from devconnect import normalize
from devconnect.models import ApplicationStatus


@pytest.fixture
def raw_application():
    """Application as the current API returns it."""
    return {
        "success": True,
        "message": "ok",
        "data": {
            "_id": "65f0c0ffee",
            "status": "SHORTLISTED",
            "appliedAt": "2025-03-01T10:00:00Z",
            "updatedAt": "2025-03-02T09:30:00Z",
            "coverLetter": "Hello",
            "jobPost": {
                "_id": "job_1",
                "title": "Platform Engineer",
                "companyName": "Acme",
                "isActive": False,
            },
            "applicant": {
                "_id": "user_7",
                "username": "ada",
                "avatarUrl": "https://cdn/ada.png",
                "profile": {"fullName": "Ada L."},
            },
        },
    }


class TestApplication:
    def test_current_shape(self, raw_application):
        app = normalize.application(raw_application)

        assert app.id == "65f0c0ffee"
        assert app.status is ApplicationStatus.SHORTLISTED
        assert app.job.id == "job_1"
        assert app.job.company == "Acme"
        assert app.job.is_active is False
        assert app.applicant.username == "ada"
        assert app.applicant.name == "Ada L."
        assert app.cover_letter == "Hello"
        assert app.updated_at > app.applied_at

    def test_legacy_shape(self):
        """Older payloads: id, lowercase status, job as bare id, createdAt, no envelope."""
        app = normalize.application({
            "id": 12,
            "status": "pending",
            "createdAt": "2025-03-01T10:00:00Z",
            "job": "job_9",
            "developer": "user_3",
        })

        assert app.id == "12"
        assert app.status is ApplicationStatus.PENDING
        assert app.job.id == "job_9"
        assert app.applicant.id == "user_3"
        assert app.updated_at == app.applied_at

    def test_nested_under_application_key(self, raw_application):
        wrapped = {"success": True, "data": {"application": raw_application["data"]}}
        assert normalize.application(wrapped).id == "65f0c0ffee"

    def test_updated_before_applied_rejected(self, raw_application):
        raw_application["data"]["updatedAt"] = "2025-02-01T00:00:00Z"
        with pytest.raises(ValidationError):
            normalize.application(raw_application)

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            normalize.application({"success": True, "data": {"status": "PENDING"}})


class TestApplicationPage:
    def test_applications_with_pagination(self, raw_application):
        page = normalize.application_page({
            "success": True,
            "data": {
                "applications": [raw_application["data"]],
                "pagination": {"total": 31, "page": 2, "limit": 10},
            },
        })
        assert len(page.applications) == 1
        assert page.pagination.total == 31
        assert page.pagination.page == 2

    def test_bare_list_uses_defaults(self, raw_application):
        page = normalize.application_page({"data": [raw_application["data"]]}, page=3, limit=5)
        assert len(page.applications) == 1
        assert page.pagination.page == 3
        assert page.pagination.limit == 5
        assert page.pagination.total == 1

    def test_pagination_beside_data(self, raw_application):
        page = normalize.application_page({
            "data": [raw_application["data"]],
            "pagination": {"total": 99, "page": 1, "limit": 10},
        })
        assert page.pagination.total == 99

    def test_empty(self):
        assert normalize.application_page({"success": True, "data": {}}).applications == []


class TestJob:
    def test_job_with_location_object(self):
        job = normalize.job({
            "success": True,
            "data": {
                "_id": "job_1",
                "title": "SRE",
                "companyName": "Acme",
                "location": {"city": "Berlin", "country": "DE"},
                "workType": "HYBRID",
                "applicationCount": 4,
            },
        })
        assert job.location == "Berlin, DE"
        assert job.work_type == "HYBRID"
        assert job.application_count == 4

    def test_job_page_items_key(self):
        page = normalize.job_page({"items": [{"id": "j1", "title": "A"}, {"id": "j2", "title": "B"}]})
        assert [j.id for j in page.jobs] == ["j1", "j2"]


class TestUsers:
    def test_follow_edges_are_unwrapped(self):
        page = normalize.user_page({
            "success": True,
            "data": {
                "followers": [
                    {"_id": "f1", "follower": {"_id": "u1", "username": "ada"}},
                    {"_id": "u2", "username": "bob", "fullName": "Bob B."},
                ],
            },
        })
        assert [u.username for u in page.users] == ["ada", "bob"]
        assert page.users[1].name == "Bob B."


class TestConfirmations:
    @pytest.mark.parametrize("payload,active,count", [
        ({"followed": True}, True, None),
        ({"success": True, "data": {"isFollowing": False, "followerCount": 9}}, False, 9),
        ({"following": True, "followersCount": 12}, True, 12),
        ({"data": {"followed": True, "stats": {"followers": 3}}}, True, 3),
        ({"success": True, "message": "Followed"}, None, None),
    ])
    def test_follow_variants(self, payload, active, count):
        confirmation = normalize.follow_confirmation(payload)
        assert confirmation.active is active
        assert confirmation.count == count

    def test_pin_variants(self):
        assert normalize.pin_confirmation({"pinned": True}).active is True
        assert normalize.pin_confirmation({"data": {"isPinned": False}}).active is False
        assert normalize.pin_confirmation({}).active is None


class TestApplicationStrictness:
    def test_missing_status_rejected(self):
        """A confirmation without a status must not be read as PENDING."""
        with pytest.raises(ValidationError):
            normalize.application({"_id": "A1", "appliedAt": "2025-01-01T00:00:00Z", "jobPost": "j1"})

    def test_timestamp_without_offset_is_utc(self):
        app = normalize.application({
            "_id": "A1",
            "status": "REVIEWED",
            "appliedAt": "2025-01-01T00:00:00Z",
            "updatedAt": "2025-01-02T00:00:00",
            "jobPost": "j1",
        })
        assert app.updated_at.tzinfo is not None
        assert app.updated_at > app.applied_at

    def test_mixed_offsets_still_checked_in_order(self):
        with pytest.raises(ValidationError):
            normalize.application({
                "_id": "A1",
                "status": "REVIEWED",
                "appliedAt": "2025-01-02T00:00:00Z",
                "updatedAt": "2025-01-01T00:00:00",
                "jobPost": "j1",
            })
