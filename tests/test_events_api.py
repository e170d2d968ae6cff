def _create(client, headers, **fields):
    body = {"Heading": "Hack Night", "Description": "Intro to systems"}
    body.update(fields)
    resp = client.post("/events", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_event_json(client, auth_headers):
    resp = client.post(
        "/events",
        json={"Heading": "Hack Night", "Description": "Intro to systems"},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["Heading"] == "Hack Night"
    assert body["Description"] == "Intro to systems"
    assert body["images"] == []
    assert body["eventNumber"] == 1
    assert body["reverse"] is False
    assert len(body["id"]) == 24
    assert body["createdAt"].endswith("Z")
    assert body["createdAt"] == body["updatedAt"]


def test_event_routes_require_token(client):
    resp = client.post("/events", json={"Heading": "H", "Description": "D"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Access token required"}

    resp = client.delete("/events/abc", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 403
    assert resp.json() == {"message": "Invalid or expired token"}


def test_list_events_is_public_and_ordered(client, auth_headers):
    assert client.get("/events").json() == []
    _create(client, auth_headers, Heading="first")
    _create(client, auth_headers, Heading="second")
    events = client.get("/events").json()
    assert [e["Heading"] for e in events] == ["first", "second"]
    assert [e["eventNumber"] for e in events] == [1, 2]


def test_create_event_missing_fields(client, auth_headers, image_host):
    resp = client.post(
        "/events",
        data={"Heading": "Only heading"},
        files=[("images", ("one.png", b"png", "image/png"))],
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Heading and Description are required"}
    assert image_host.uploaded == []


def test_create_event_multipart_orders_uploads_before_urls(client, auth_headers, image_host):
    resp = client.post(
        "/events",
        data={
            "Heading": "Workshop",
            "Description": "Bring a laptop",
            "reverse": "true",
            "imageUrls": ["https://cdn.example/pre.png", "ftp://nope/x.png"],
        },
        files=[
            ("images", ("one.png", b"one", "image/png")),
            ("images", ("two.png", b"two", "image/png")),
        ],
        headers=auth_headers,
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["images"] == [
        "https://img.example/one.png",
        "https://img.example/two.png",
        "https://cdn.example/pre.png",
    ]
    assert body["reverse"] is True
    assert image_host.uploaded == ["one.png", "two.png"]


def test_create_event_upload_failure_creates_nothing(client, auth_headers):
    resp = client.post(
        "/events",
        data={"Heading": "H", "Description": "D"},
        files=[("images", ("bad.png", b"x", "image/png"))],
        headers=auth_headers,
    )
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Failed to create event",
        "detail": "Image upload failed (401): Invalid API key",
    }
    assert client.get("/events").json() == []


def test_update_event_partial(client, auth_headers):
    created = _create(client, auth_headers, imageUrls=["https://cdn.example/a.png"], date="2024-05-01")
    assert created["images"] == ["https://cdn.example/a.png"]
    resp = client.put(
        f"/events/{created['id']}",
        json={"Heading": "Renamed", "images": [], "id": "ignored", "eventNumber": 99},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["Heading"] == "Renamed"
    assert body["Description"] == "Intro to systems"
    assert body["images"] == []
    assert body["date"] == "2024-05-01"
    assert body["eventNumber"] == 1
    assert body["id"] == created["id"]
    assert body["createdAt"] == created["createdAt"]


def test_update_event_cannot_clear_required(client, auth_headers):
    created = _create(client, auth_headers)
    resp = client.put(f"/events/{created['id']}", json={"Heading": ""}, headers=auth_headers)
    assert resp.status_code == 400
    assert "Heading" in resp.json()["error"]


def test_update_unknown_event(client, auth_headers):
    resp = client.put("/events/000000000000000000000000", json={"Heading": "x"}, headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not found"}


def test_delete_event(client, auth_headers):
    created = _create(client, auth_headers)
    resp = client.delete(f"/events/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert client.get("/events").json() == []

    again = client.delete(f"/events/{created['id']}", headers=auth_headers)
    assert again.status_code == 404

    assert _create(client, auth_headers)["eventNumber"] == 1
