def test_create_list_and_get_resources(client, staff_headers):
    created = client.post(
        "/resources",
        headers=staff_headers,
        json={"name": "Treatment Room", "kind": "physical", "sort_order": 3},
    )
    assert created.status_code == 201
    resource = created.json()
    assert resource["kind"] == "physical"
    assert resource["status"] == "active"

    listed = client.get("/resources", headers=staff_headers)
    fetched = client.get(f"/resources/{resource['id']}", headers=staff_headers)

    assert [item["id"] for item in listed.json()] == [resource["id"]]
    assert fetched.json()["name"] == "Treatment Room"


def test_inactive_resources_are_hidden_unless_requested(client, staff_headers):
    resource = client.post("/resources", headers=staff_headers, json={"name": "Old Chair"}).json()
    client.patch(f"/resources/{resource['id']}/deactivate", headers=staff_headers)

    default_list = client.get("/resources", headers=staff_headers).json()
    full_list = client.get("/resources", headers=staff_headers, params={"include_inactive": True}).json()

    assert default_list == []
    assert [item["id"] for item in full_list] == [resource["id"]]


def test_weekly_availability_is_replaced_as_a_whole(client, staff_headers):
    resource = client.post("/resources", headers=staff_headers, json={"name": "Dr. Ada"}).json()
    url = f"/resources/{resource['id']}/availability"

    client.put(
        url,
        headers=staff_headers,
        json={
            "windows": [
                {"day_of_week": "wednesday", "start_time": "10:00", "end_time": "14:00"},
                {"day_of_week": "monday", "start_time": "09:00", "end_time": "17:00"},
            ]
        },
    )
    replaced = client.put(
        url,
        headers=staff_headers,
        json={"windows": [{"day_of_week": "friday", "start_time": "08:00", "end_time": "12:00"}]},
    )
    read_back = client.get(url, headers=staff_headers)

    assert replaced.status_code == 200
    assert read_back.json() == [
        {"day_of_week": "friday", "start_time": "08:00:00", "end_time": "12:00:00", "is_available": True}
    ]


def test_weekly_availability_orders_days_from_monday(client, staff_headers):
    resource = client.post("/resources", headers=staff_headers, json={"name": "Dr. Ada"}).json()
    url = f"/resources/{resource['id']}/availability"

    client.put(
        url,
        headers=staff_headers,
        json={
            "windows": [
                {"day_of_week": "sunday", "start_time": "10:00", "end_time": "12:00"},
                {"day_of_week": "monday", "start_time": "09:00", "end_time": "17:00"},
            ]
        },
    )

    days = [window["day_of_week"] for window in client.get(url, headers=staff_headers).json()]
    assert days == ["monday", "sunday"]


def test_weekly_availability_validation(client, staff_headers):
    resource = client.post("/resources", headers=staff_headers, json={"name": "Dr. Ada"}).json()
    url = f"/resources/{resource['id']}/availability"

    inverted = client.put(
        url,
        headers=staff_headers,
        json={"windows": [{"day_of_week": "monday", "start_time": "17:00", "end_time": "09:00"}]},
    )
    duplicated = client.put(
        url,
        headers=staff_headers,
        json={
            "windows": [
                {"day_of_week": "monday", "start_time": "09:00", "end_time": "12:00"},
                {"day_of_week": "monday", "start_time": "13:00", "end_time": "17:00"},
            ]
        },
    )

    assert inverted.status_code == 422
    assert duplicated.status_code == 422


def test_blockouts_create_list_delete(client, staff_headers):
    resource = client.post("/resources", headers=staff_headers, json={"name": "Dr. Ada"}).json()
    url = f"/resources/{resource['id']}/blockouts"

    created = client.post(
        url,
        headers=staff_headers,
        json={"start_at": "2026-03-02T12:00:00+01:00", "end_at": "2026-03-02T13:00:00+01:00"},
    )
    assert created.status_code == 201
    blockout = created.json()
    assert blockout["start_at"] == "2026-03-02T11:00:00Z"

    in_range = client.get(
        url,
        headers=staff_headers,
        params={"start_at": "2026-03-02T00:00:00Z", "end_at": "2026-03-03T00:00:00Z"},
    )
    out_of_range = client.get(
        url,
        headers=staff_headers,
        params={"start_at": "2026-03-03T00:00:00Z", "end_at": "2026-03-04T00:00:00Z"},
    )
    assert [item["id"] for item in in_range.json()] == [blockout["id"]]
    assert out_of_range.json() == []

    deleted = client.delete(f"{url}/{blockout['id']}", headers=staff_headers)
    missing = client.delete(f"{url}/{blockout['id']}", headers=staff_headers)

    assert deleted.status_code == 204
    assert missing.status_code == 404
    assert client.get(url, headers=staff_headers).json() == []


def test_blockout_must_end_after_it_starts(client, staff_headers):
    resource = client.post("/resources", headers=staff_headers, json={"name": "Dr. Ada"}).json()

    response = client.post(
        f"/resources/{resource['id']}/blockouts",
        headers=staff_headers,
        json={"start_at": "2026-03-02T13:00:00Z", "end_at": "2026-03-02T12:00:00Z"},
    )

    assert response.status_code == 422


def test_resources_are_scoped_to_tenant(client, register_staff):
    owner = register_staff(email="owner@example.com", tenant_name="Owner Clinic")
    other = register_staff(email="other@example.com", tenant_name="Other Clinic")
    resource = client.post("/resources", headers=owner, json={"name": "Dr. Ada"}).json()

    assert client.get(f"/resources/{resource['id']}", headers=other).status_code == 404
    assert client.get("/resources", headers=other).json() == []
    assert client.get(f"/resources/{resource['id']}/availability", headers=other).status_code == 404
