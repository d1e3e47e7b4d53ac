from chorescape.domain.bookings.lifecycle import BookingStatus
from chorescape.models import Role

from conftest import auth


def test_assign_worker(client, admin, worker, customer, make_booking):
    booking = make_booking(customer=customer)

    response = client.patch(
        f"/api/admin/bookings/{booking.id}/assign",
        json={"workerId": worker.id},
        headers=auth(admin.token),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Worker assigned successfully"
    assert body["booking"]["status"] == "ASSIGNED"
    assert body["booking"]["assignedWorkerId"] == worker.id
    assert body["booking"]["assignedWorker"]["fullName"] == "Walt"

    jobs = client.get("/api/worker/bookings", headers=auth(worker.token))
    assert [b["id"] for b in jobs.json()["bookings"]] == [booking.id]


def test_reassign_overwrites_previous_worker(client, admin, worker, make_profile, make_booking):
    booking = make_booking(BookingStatus.ASSIGNED, worker=worker)
    other = make_profile(Role.WORKER)

    response = client.patch(
        f"/api/admin/bookings/{booking.id}/assign",
        json={"workerId": other.id},
        headers=auth(admin.token),
    )

    assert response.status_code == 200
    assert response.json()["booking"]["assignedWorkerId"] == other.id


def test_assign_rejects_non_workers_and_bad_states(client, admin, customer, worker, make_booking):
    booking = make_booking()
    done = make_booking(BookingStatus.COMPLETED)

    not_worker = client.patch(
        f"/api/admin/bookings/{booking.id}/assign",
        json={"workerId": customer.id},
        headers=auth(admin.token),
    )
    completed = client.patch(
        f"/api/admin/bookings/{done.id}/assign",
        json={"workerId": worker.id},
        headers=auth(admin.token),
    )

    assert not_worker.status_code == 404
    assert not_worker.json()["message"] == "Worker not found"
    assert completed.status_code == 400
    assert completed.json()["data"]["currentStatus"] == "COMPLETED"


def test_assign_validates_the_assignee(client, admin, make_booking):
    booking = make_booking()
    url = f"/api/admin/bookings/{booking.id}/assign"

    both = client.patch(url, json={"workerId": "w", "teamId": "t"}, headers=auth(admin.token))
    neither = client.patch(url, json={}, headers=auth(admin.token))

    assert both.status_code == 400
    assert both.json()["message"] == "Cannot assign both a worker and a team. Choose one."
    assert neither.status_code == 400
    assert neither.json()["message"] == "Either workerId or teamId is required"


def test_unassign(client, admin, worker, make_booking):
    assigned = make_booking(BookingStatus.ASSIGNED, worker=worker)
    in_progress = make_booking(BookingStatus.IN_PROGRESS, worker=worker)

    first = client.patch(f"/api/admin/bookings/{assigned.id}/unassign", headers=auth(admin.token))
    second = client.patch(
        f"/api/admin/bookings/{in_progress.id}/unassign", headers=auth(admin.token)
    )

    assert first.json()["booking"]["status"] == "CONFIRMED"
    assert first.json()["booking"]["assignedWorkerId"] is None
    assert second.json()["booking"]["status"] == "IN_PROGRESS"
    assert second.json()["booking"]["assignedWorkerId"] is None


def test_status_override(client, admin, make_booking):
    booking = make_booking(BookingStatus.COMPLETED)

    response = client.patch(
        f"/api/admin/bookings/{booking.id}/status",
        json={"status": "confirmed", "notes": "Reopened"},
        headers=auth(admin.token),
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Booking status updated successfully"
    assert response.json()["booking"]["status"] == "CONFIRMED"
    assert response.json()["booking"]["notes"] == "Reopened"


def test_status_override_requires_worker_for_worker_statuses(client, admin, make_booking):
    booking = make_booking()

    response = client.patch(
        f"/api/admin/bookings/{booking.id}/status",
        json={"status": "ACCEPTED"},
        headers=auth(admin.token),
    )

    assert response.status_code == 400


def test_status_is_required(client, admin, make_booking):
    booking = make_booking()

    response = client.patch(
        f"/api/admin/bookings/{booking.id}/status", json={}, headers=auth(admin.token)
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Status is required"


def test_full_edit_with_worker_sets_assigned(client, admin, worker, make_booking):
    booking = make_booking()

    response = client.put(
        f"/api/admin/bookings/{booking.id}",
        json={"assignedWorkerId": worker.id, "totalAmount": 200, "city": "Moose Jaw"},
        headers=auth(admin.token),
    )

    assert response.status_code == 200
    body = response.json()["booking"]
    assert body["status"] == "ASSIGNED"
    assert body["assignedWorkerId"] == worker.id
    assert body["totalAmount"] == 200
    assert body["city"] == "Moose Jaw"


def test_full_edit_null_worker_unassigns(client, admin, worker, make_booking):
    booking = make_booking(BookingStatus.ASSIGNED, worker=worker)

    response = client.put(
        f"/api/admin/bookings/{booking.id}",
        json={"assignedWorkerId": None},
        headers=auth(admin.token),
    )

    assert response.json()["booking"]["assignedWorkerId"] is None
    assert response.json()["booking"]["status"] == "CONFIRMED"


def test_full_edit_rejects_unknown_worker(client, admin, make_booking):
    booking = make_booking()

    response = client.put(
        f"/api/admin/bookings/{booking.id}",
        json={"assignedWorkerId": "missing"},
        headers=auth(admin.token),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid worker ID"


def test_inactive_worker_cannot_be_given_a_booking(client, admin, make_profile, make_booking):
    inactive = make_profile(Role.WORKER, is_active=False)
    booking = make_booking()

    assigned = client.patch(
        f"/api/admin/bookings/{booking.id}/assign",
        json={"workerId": inactive.id},
        headers=auth(admin.token),
    )
    edited = client.put(
        f"/api/admin/bookings/{booking.id}",
        json={"assignedWorkerId": inactive.id},
        headers=auth(admin.token),
    )

    assert assigned.status_code == 400
    assert assigned.json()["message"] == "Worker account is inactive"
    assert edited.status_code == 400
    assert edited.json()["message"] == "Worker account is inactive"


def test_list_paginates_filters_and_searches(client, admin, customer, make_booking):
    for _ in range(3):
        make_booking(customer=customer)
    make_booking(BookingStatus.CANCELLED, city="Saskatoon")

    page = client.get(
        "/api/admin/bookings", params={"page": 2, "pageSize": 2}, headers=auth(admin.token)
    )
    assert page.status_code == 200
    assert len(page.json()["bookings"]) == 2
    assert page.json()["pagination"] == {"page": 2, "pageSize": 2, "total": 4, "totalPages": 2}

    cancelled = client.get(
        "/api/admin/bookings", params={"status": "CANCELLED"}, headers=auth(admin.token)
    )
    assert [b["city"] for b in cancelled.json()["bookings"]] == ["Saskatoon"]

    by_email = client.get(
        "/api/admin/bookings", params={"search": "ALICE@"}, headers=auth(admin.token)
    )
    assert by_email.json()["pagination"]["total"] == 3


def test_admin_routes_require_admin(client, worker):
    response = client.get("/api/admin/bookings", headers=auth(worker.token))

    assert response.status_code == 403


def test_list_degrades_when_datastore_fails(client, admin, broken_datastore):
    response = client.get("/api/admin/bookings", headers=auth(admin.token))

    assert response.status_code == 200
    body = response.json()
    assert body["bookings"] == []
    assert body["pagination"]["total"] == 0
    assert "unable to open database file" in body["error"]


def test_other_admin_routes_report_the_outage(client, admin, broken_datastore):
    response = client.get("/api/admin/bookings/some-id", headers=auth(admin.token))

    assert response.status_code == 503
    assert response.json()["message"] == "Database temporarily unavailable"
