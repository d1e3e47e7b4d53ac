from chorescape.models import Service

from conftest import auth


def test_public_catalog_lists_active_services_trending_first(client, make_service):
    make_service(name="Basic Clean", slug="basic-clean")
    make_service(
        name="Move Out",
        slug="move-out",
        is_trending=True,
        options=[{"name": "Oven", "price": 40.0}, {"name": "Fridge", "is_active": False}],
    )
    make_service(name="Hidden", slug="hidden", is_active=False)

    response = client.get("/api/public/services")

    assert response.status_code == 200
    services = response.json()
    assert [s["slug"] for s in services] == ["move-out", "basic-clean"]
    assert services[0]["title"] == "Move Out"
    assert services[0]["bullets"] == ["Oven"]


def test_public_service_by_slug_or_id(client, make_service):
    service = make_service()

    by_slug = client.get("/api/public/services/deep-clean")
    by_id = client.get(f"/api/public/services/{service.id}")
    missing = client.get("/api/public/services/nope")

    assert by_slug.json()["id"] == service.id
    assert by_id.json()["slug"] == "deep-clean"
    assert missing.status_code == 404
    assert missing.json()["message"] == "Service not found"


def test_invalid_service_type_filter(client):
    response = client.get("/api/public/services", params={"type": "industrial"})

    assert response.status_code == 400


def test_create_service_rejects_duplicate_slug(client, admin, make_service):
    make_service()

    created = client.post(
        "/api/admin/services",
        json={"name": "Office Clean", "slug": "office-clean", "type": "corporate"},
        headers=auth(admin.token),
    )
    duplicate = client.post(
        "/api/admin/services",
        json={"name": "Deep Clean 2", "slug": "deep-clean"},
        headers=auth(admin.token),
    )

    assert created.status_code == 201
    assert created.json()["type"] == "CORPORATE"
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "Service with this slug already exists"


def test_create_service_validates_slug(client, admin):
    response = client.post(
        "/api/admin/services",
        json={"name": "Deep Clean", "slug": "Deep Clean!"},
        headers=auth(admin.token),
    )

    assert response.status_code == 400


def test_update_service(client, admin, make_service):
    service = make_service()

    response = client.patch(
        f"/api/admin/services/{service.id}",
        json={"basePrice": 99.5, "isTrending": True},
        headers=auth(admin.token),
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Service updated successfully"
    assert response.json()["service"]["basePrice"] == 99.5
    assert response.json()["service"]["isTrending"] is True


def test_delete_service_with_bookings_only_deactivates(
    client, admin, make_service, make_booking, db
):
    used = make_service()
    unused = make_service(name="Unused", slug="unused")
    make_booking(service_id=used.id)

    soft = client.delete(f"/api/admin/services/{used.id}", headers=auth(admin.token))
    hard = client.delete(f"/api/admin/services/{unused.id}", headers=auth(admin.token))

    assert soft.json()["message"] == "Service deactivated (has existing bookings)"
    assert soft.json()["service"]["isActive"] is False
    assert soft.json()["service"]["bookingCount"] == 1
    assert hard.json()["message"] == "Service deleted successfully"

    db.expire_all()
    assert db.get(Service, unused.id) is None
    assert db.get(Service, used.id) is not None


def test_option_pricing_is_exclusive(client, admin, make_service):
    service = make_service()

    response = client.post(
        "/api/admin/service-options",
        json={"serviceId": service.id, "name": "Oven", "price": 40, "priceModifier": 10},
        headers=auth(admin.token),
    )

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Cannot set both price and priceModifier. Use one or the other."
    )


def test_option_update_switches_pricing_mode(client, admin, make_service):
    service = make_service()
    created = client.post(
        "/api/admin/service-options",
        json={"serviceId": service.id, "name": "Oven", "price": 40},
        headers=auth(admin.token),
    )
    option_id = created.json()["id"]

    response = client.patch(
        f"/api/admin/service-options/{option_id}",
        json={"priceModifier": 15},
        headers=auth(admin.token),
    )

    assert created.status_code == 201
    assert response.json()["option"]["priceModifier"] == 15
    assert response.json()["option"]["price"] is None


def test_option_for_missing_service(client, admin):
    response = client.post(
        "/api/admin/service-options",
        json={"serviceId": "missing", "name": "Oven"},
        headers=auth(admin.token),
    )

    assert response.status_code == 404


def test_catalog_admin_requires_admin(client, customer):
    response = client.get("/api/admin/services", headers=auth(customer.token))

    assert response.status_code == 403
