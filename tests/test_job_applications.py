from datetime import timedelta

from backend.hiresphere.models.job import Job
from backend.hiresphere.utils.timeutil import utcnow

RESUME = "https://cv.example.com/sam.pdf"


def _apply(client, seeker, job, **extra):
    body = {"job_id": job["id"], "resume_url": RESUME}
    body.update(extra)
    return client.post("/api/jobapplication", json=body, headers=seeker["headers"])


def test_job_seeker_applies(client, seeker, job):
    r = _apply(client, seeker, job, cover_letter="Hire me, please.")
    assert r.status_code == 201, r.text
    application = r.json()["application"]
    assert application["status"] == "Applied"
    assert application["applicant_user_id"] == seeker["id"]
    assert application["cover_letter"] == "Hire me, please."


def test_duplicate_application_is_rejected(client, seeker, job):
    assert _apply(client, seeker, job).status_code == 201
    r = _apply(client, seeker, job)
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "You have already applied to this job."


def test_only_job_seekers_apply(client, employer, job):
    assert _apply(client, employer, job).status_code == 403


def test_cannot_apply_to_inactive_or_expired_job(client, employer, seeker, job, db_session):
    client.post(f"/api/job/{job['id']}/deactivate", headers=employer["headers"])
    r = _apply(client, seeker, job)
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "This job is no longer accepting applications."

    client.post(f"/api/job/{job['id']}/activate", headers=employer["headers"])
    row = db_session.get(Job, job["id"])
    row.posted_at = utcnow() - timedelta(days=60)
    row.expires_at = utcnow() - timedelta(days=1)
    db_session.commit()
    assert _apply(client, seeker, job).status_code == 400


def test_invalid_resume_url_is_400(client, seeker, job):
    r = client.post(
        "/api/jobapplication",
        json={"job_id": job["id"], "resume_url": "my-cv.pdf"},
        headers=seeker["headers"],
    )
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Invalid resume URL format."


def test_status_changes_follow_lifecycle(client, employer, seeker, job):
    app_id = _apply(client, seeker, job).json()["application"]["id"]
    url = f"/api/jobapplication/{app_id}/status"

    # Applicants can't move their own application.
    assert client.put(url, json={"status": "Screening"}, headers=seeker["headers"]).status_code == 403

    skip = client.put(url, json={"status": "Offered"}, headers=employer["headers"])
    assert skip.status_code == 400, skip.text
    assert skip.json()["error"] == "Invalid status transition from Applied."

    for status in ("Screening", "Interview", "Offered", "Accepted"):
        r = client.put(url, json={"status": status}, headers=employer["headers"])
        assert r.status_code == 200, r.text
        assert r.json()["application"]["status"] == status

    final = client.put(url, json={"status": "Rejected"}, headers=employer["headers"])
    assert final.status_code == 400
    assert final.json()["error"] == "Invalid status transition from Accepted."

    unknown = client.put(url, json={"status": "Hired"}, headers=employer["headers"])
    assert unknown.status_code == 400
    assert unknown.json()["error"] == "Invalid application status."


def test_applicant_updates_cover_letter_and_resume(client, seeker, job):
    app_id = _apply(client, seeker, job).json()["application"]["id"]

    empty = client.put(
        f"/api/jobapplication/{app_id}/cover-letter", json={"cover_letter": " "}, headers=seeker["headers"]
    )
    assert empty.status_code == 400
    assert empty.json()["error"] == "Cover letter cannot be empty."

    too_long = client.put(
        f"/api/jobapplication/{app_id}/cover-letter", json={"cover_letter": "x" * 2001}, headers=seeker["headers"]
    )
    assert too_long.status_code == 400

    ok = client.put(
        f"/api/jobapplication/{app_id}/cover-letter",
        json={"cover_letter": "Updated letter."},
        headers=seeker["headers"],
    )
    assert ok.status_code == 200, ok.text
    assert ok.json()["application"]["cover_letter"] == "Updated letter."

    r = client.put(
        f"/api/jobapplication/{app_id}",
        json={"resume_url": "https://cv.example.com/sam-v2.pdf"},
        headers=seeker["headers"],
    )
    assert r.status_code == 200, r.text
    assert r.json()["application"]["resume_url"] == "https://cv.example.com/sam-v2.pdf"


def test_visibility_rules(client, signup, admin, employer, seeker, job):
    app_id = _apply(client, seeker, job).json()["application"]["id"]
    stranger = signup("stranger@example.com")

    assert client.get(f"/api/jobapplication/{app_id}", headers=seeker["headers"]).status_code == 200
    assert client.get(f"/api/jobapplication/{app_id}", headers=employer["headers"]).status_code == 200
    assert client.get(f"/api/jobapplication/{app_id}", headers=admin["headers"]).status_code == 200
    assert client.get(f"/api/jobapplication/{app_id}", headers=stranger["headers"]).status_code == 403

    assert len(client.get(f"/api/jobapplication/job/{job['id']}", headers=employer["headers"]).json()["applications"]) == 1
    assert client.get(f"/api/jobapplication/job/{job['id']}", headers=seeker["headers"]).status_code == 403

    mine = client.get(f"/api/jobapplication/applicant/{seeker['id']}", headers=seeker["headers"])
    assert len(mine.json()["applications"]) == 1
    assert client.get(f"/api/jobapplication/applicant/{seeker['id']}", headers=stranger["headers"]).status_code == 403

    pair = client.get(f"/api/jobapplication/job/{job['id']}/applicant/{seeker['id']}", headers=employer["headers"])
    assert pair.status_code == 200
    assert pair.json()["application"]["id"] == app_id
    missing = client.get(f"/api/jobapplication/job/{job['id']}/applicant/{stranger['id']}", headers=admin["headers"])
    assert missing.status_code == 404


def test_admin_filters_and_statistics(client, admin, employer, seeker, job):
    app_id = _apply(client, seeker, job).json()["application"]["id"]
    client.put(f"/api/jobapplication/{app_id}/status", json={"status": "Screening"}, headers=employer["headers"])

    assert client.get("/api/jobapplication", headers=employer["headers"]).status_code == 403

    listed = client.get("/api/jobapplication", params={"status": "Screening"}, headers=admin["headers"])
    assert [a["id"] for a in listed.json()["applications"]] == [app_id]
    assert client.get("/api/jobapplication", params={"status": "Applied"}, headers=admin["headers"]).json()[
        "applications"
    ] == []
    by_status = client.get("/api/jobapplication/status/screening", headers=admin["headers"])
    assert len(by_status.json()["applications"]) == 1
    assert client.get("/api/jobapplication/status/bogus", headers=admin["headers"]).status_code == 400

    stats = client.get("/api/jobapplication/statistics", headers=admin["headers"]).json()["statistics"]
    assert stats["total_applications"] == 1
    assert stats["applications_by_status"]["Screening"] == 1


def test_delete_application(client, signup, admin, seeker, job):
    app_id = _apply(client, seeker, job).json()["application"]["id"]
    stranger = signup("nosy@example.com")
    assert client.delete(f"/api/jobapplication/{app_id}", headers=stranger["headers"]).status_code == 403
    assert client.delete(f"/api/jobapplication/{app_id}", headers=seeker["headers"]).status_code == 204
    assert client.get(f"/api/jobapplication/{app_id}", headers=admin["headers"]).status_code == 404
