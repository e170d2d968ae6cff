import pytest

from cms.image_host import ImageFile
from cms.webui.api_client import ApiError, CmsApiClient
from cms.webui.controller import BlogFormController, EventFormController, FormMode


@pytest.fixture
def api(client):
    api = CmsApiClient("http://testserver", session=client)
    api.login("admin", "secret")
    return api


def _png(name):
    return ImageFile(content=b"\x89PNG" + name.encode(), media_type="image/png", name=name)


def test_api_client_login_failure(client):
    api = CmsApiClient("http://testserver", session=client)
    with pytest.raises(ApiError) as exc:
        api.login("admin", "wrong")
    assert exc.value.status == 401
    assert exc.value.message == "Invalid credentials"
    assert api.token is None


def test_event_create_then_edit_with_image_removal(api):
    ctrl = EventFormController(api)
    created = ctrl.submit({"Heading": "Hack Night", "Description": "Intro"}, [_png("one.png")])
    assert created["images"] == ["https://img.example/one.png"]
    assert ctrl.status.kind == "success"
    assert ctrl.status.message == "Event created"
    assert [e["id"] for e in ctrl.records] == [created["id"]]

    prefill = ctrl.begin_edit(created)
    assert prefill["Heading"] == "Hack Night"
    assert ctrl.state.mode is FormMode.EDIT

    ctrl.mark_image_for_removal("https://img.example/one.png")
    updated = ctrl.submit(dict(prefill, Heading="Hack Night II"), [_png("two.png")])
    assert updated["Heading"] == "Hack Night II"
    assert updated["images"] == ["https://img.example/two.png"]
    assert updated["eventNumber"] == created["eventNumber"]
    assert ctrl.status.message == "Event updated"
    assert ctrl.state.mode is FormMode.CREATE
    assert ctrl.existing_images == []


def test_event_unmark_keeps_image(api):
    ctrl = EventFormController(api)
    created = ctrl.submit({"Heading": "H", "Description": "D"}, [_png("keep.png")])
    ctrl.begin_edit(created)
    ctrl.mark_image_for_removal("https://img.example/keep.png")
    ctrl.unmark_image("https://img.example/keep.png")
    assert ctrl.final_images(["https://img.example/new.png"]) == [
        "https://img.example/keep.png",
        "https://img.example/new.png",
    ]


def test_event_client_side_validation_sends_nothing(api, image_host):
    ctrl = EventFormController(api)
    assert ctrl.submit({"Heading": "  ", "Description": "D"}, [_png("one.png")]) is None
    assert ctrl.status.kind == "error"
    assert image_host.uploaded == []


def test_event_upload_error_keeps_edit_state(api):
    ctrl = EventFormController(api)
    created = ctrl.submit({"Heading": "H", "Description": "D"})
    ctrl.begin_edit(created)
    assert ctrl.submit({"Heading": "H", "Description": "D"}, [_png("bad.png")]) is None
    assert ctrl.status.kind == "error"
    assert ctrl.status.message.startswith("Error: Failed to upload images")
    assert ctrl.state.mode is FormMode.EDIT


def test_event_delete_resets_form_when_editing(api):
    ctrl = EventFormController(api)
    created = ctrl.submit({"Heading": "H", "Description": "D"})
    ctrl.begin_edit(created)
    assert ctrl.delete(created["id"]) is True
    assert ctrl.state.mode is FormMode.CREATE
    assert ctrl.records == []
    assert ctrl.delete(created["id"]) is False
    assert ctrl.status.message == "Delete failed: Not found"


def test_blog_edit_preserves_then_removes_image(api):
    ctrl = BlogFormController(api)
    created = ctrl.submit({"title": "Launch", "excerpt": "We shipped"}, _png("cover.png"))
    assert created["image"] == "https://img.example/cover.png"
    assert ctrl.status.message == "Blog post saved"

    prefill = ctrl.begin_edit(created)
    kept = ctrl.submit(dict(prefill, title="Launch day"))
    assert kept["title"] == "Launch day"
    assert kept["image"] == "https://img.example/cover.png"
    assert ctrl.status.message == "Blog post updated"

    ctrl.begin_edit(kept)
    ctrl.mark_image_for_removal()
    removed = ctrl.submit(prefill)
    assert removed["image"] is None


def test_blog_payload_for_create_with_hosted_url(api):
    ctrl = BlogFormController(api)
    payload = ctrl.build_payload({"title": " T ", "excerpt": "E", "image": "https://cdn.example/x.png"}, None)
    assert payload == {"title": "T", "excerpt": "E", "image": "https://cdn.example/x.png"}


def test_blog_submit_without_token(client):
    ctrl = BlogFormController(CmsApiClient("http://testserver", session=client))
    assert ctrl.submit({"title": "T", "excerpt": "E"}) is None
    assert ctrl.status.message == "Failed to save blog: Access token required"


def test_refresh_lists_records(api):
    ctrl = BlogFormController(api)
    ctrl.submit({"title": "one", "excerpt": "E"})
    ctrl.submit({"title": "two", "excerpt": "E"})
    assert [b["title"] for b in ctrl.refresh()] == ["two", "one"]
    assert ctrl.status.message == "Blogs loaded"
