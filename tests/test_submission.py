"""Report submission: form validation, photo limits and time boxes."""
import asyncio

import pytest

from emergency_hub.emergencies import manager, storage
from emergency_hub.emergencies.models import EmergencyStatus, PhotoUpload
from emergency_hub.shared import config
from emergency_hub.shared.errors import OperationTimeout, ValidationError

MB = 1024 * 1024


def run(coro):
    return asyncio.run(coro)


def form(**overrides):
    fields = {
        "type": "flood",
        "priority": "critical",
        "title": "River overflowing",
        "description": "Water is entering homes on Bank Street",
        "location": {"latitude": 9.05, "longitude": 7.49, "address": "Bank Street"},
        "phone": None,
    }
    fields.update(overrides)
    return fields


def photo(name="scene.jpg", size=1024, content_type="image/jpeg"):
    return PhotoUpload(filename=name, content_type=content_type, data=b"x" * size)


@pytest.fixture
def uploads(monkeypatch):
    """Replace the Cloudinary call; records the blob paths it was asked for."""
    paths = []

    async def fake_upload(photo, path):
        paths.append(path)
        return f"https://res.cloudinary.com/demo/image/upload/{path}"

    monkeypatch.setattr(storage, "upload_photo", fake_upload)
    return paths


# Form validation

def test_description_of_nine_characters_is_rejected():
    with pytest.raises(ValidationError) as exc:
        manager.build_submission(form(description="123456789"))
    assert exc.value.data["errors"][0]["field"] == "description"


def test_description_of_ten_characters_is_accepted():
    submission = manager.build_submission(form(description="1234567890"))
    assert submission.description == "1234567890"


def test_blank_title_is_rejected():
    with pytest.raises(ValidationError):
        manager.build_submission(form(title="   "))


def test_unknown_type_is_rejected():
    with pytest.raises(ValidationError):
        manager.build_submission(form(type="alien_invasion"))


def test_location_at_origin_counts_as_missing():
    with pytest.raises(ValidationError):
        manager.build_submission(form(location={"latitude": 0, "longitude": 0}))


def test_latitude_out_of_range_is_rejected():
    with pytest.raises(ValidationError):
        manager.build_submission(form(location={"latitude": 91, "longitude": 7.49}))


# Photos

def test_six_photos_are_rejected_before_uploading(store, uploads, citizen):
    submission = manager.build_submission(form())
    photos = [photo(f"p{i}.jpg") for i in range(6)]

    with pytest.raises(ValidationError):
        run(manager.submit_emergency(submission, photos, citizen))

    assert uploads == []
    assert store.reports == {}


def test_five_photos_are_accepted(store, uploads, citizen):
    submission = manager.build_submission(form())
    photos = [photo(f"p{i}.jpg") for i in range(5)]

    result = run(manager.submit_emergency(submission, photos, citizen))

    assert len(result.images) == 5
    assert result.skipped_photos == []
    assert result.status == EmergencyStatus.REPORTED


def test_oversized_photo_is_skipped_not_fatal(store, uploads, citizen):
    submission = manager.build_submission(form())
    photos = [photo("big.jpg", size=5 * MB + 1), photo("ok.jpg")]

    result = run(manager.submit_emergency(submission, photos, citizen))

    assert len(result.images) == 1
    assert result.skipped_photos == [{"index": 0, "filename": "big.jpg", "reason": "larger than 5MB"}]
    assert store.reports[result.emergency_id].images == result.images


def test_photo_of_exactly_five_megabytes_is_kept(store, uploads, citizen):
    result = run(manager.submit_emergency(manager.build_submission(form()), [photo(size=5 * MB)], citizen))
    assert len(result.images) == 1


def test_non_image_and_empty_files_are_skipped(store, uploads, citizen):
    photos = [photo("notes.pdf", content_type="application/pdf"), photo("empty.png", size=0)]

    result = run(manager.submit_emergency(manager.build_submission(form()), photos, citizen))

    assert result.images == []
    assert [s["reason"] for s in result.skipped_photos] == ["not an image", "empty file"]


def test_failed_upload_is_skipped(store, monkeypatch, citizen):
    async def flaky_upload(photo, path):
        if photo.filename == "bad.jpg":
            raise RuntimeError("connection reset")
        return "https://cdn.example/" + path

    monkeypatch.setattr(storage, "upload_photo", flaky_upload)
    photos = [photo("bad.jpg"), photo("good.jpg")]

    result = run(manager.submit_emergency(manager.build_submission(form()), photos, citizen))

    assert len(result.images) == 1
    assert result.skipped_photos[0]["filename"] == "bad.jpg"
    assert result.skipped_photos[0]["reason"] == "connection reset"


def test_slow_upload_is_abandoned_and_skipped(store, monkeypatch, citizen):
    async def slow_upload(photo, path):
        await asyncio.sleep(1)
        return "https://cdn.example/" + path

    monkeypatch.setattr(storage, "upload_photo", slow_upload)
    monkeypatch.setattr(config, "UPLOAD_TIMEOUT_SECONDS", 0.01)

    result = run(manager.submit_emergency(manager.build_submission(form()), [photo()], citizen))

    assert result.images == []
    assert len(result.skipped_photos) == 1
    assert result.emergency_id in store.reports


def test_blob_paths_follow_naming_convention(store, uploads, citizen):
    run(manager.submit_emergency(manager.build_submission(form()), [photo("a.jpg"), photo("b.png")], citizen))

    timestamp = uploads[0].split("/")[1].split("-")[0]
    assert uploads == [f"emergency-images/{timestamp}-0-a.jpg", f"emergency-images/{timestamp}-1-b.png"]


def test_photo_path_strips_directories():
    assert storage.photo_path(1700000000000, 2, "../../etc/fire.jpg") == "emergency-images/1700000000000-2-fire.jpg"


# Report document

def test_report_is_created_with_reporter_identity(store, uploads, citizen):
    result = run(manager.submit_emergency(manager.build_submission(form(phone="+2347000")), [], citizen))

    report = store.reports[result.emergency_id]
    assert report.status == EmergencyStatus.REPORTED
    assert report.reporter.id == citizen.user_id
    assert report.reporter.name == citizen.name
    assert report.reporter.phone == "+2347000"
    assert report.notes == []
    assert report.version == 1


def test_reporter_phone_defaults_to_profile_phone(store, uploads, citizen):
    result = run(manager.submit_emergency(manager.build_submission(form()), [], citizen))
    assert store.reports[result.emergency_id].reporter.phone == citizen.phone


# Time boxes

def test_overall_timeout_offers_retry_without_images(store, monkeypatch, citizen):
    async def hanging_upload(photo, path):
        await asyncio.sleep(1)

    monkeypatch.setattr(storage, "upload_photo", hanging_upload)
    monkeypatch.setattr(config, "SUBMIT_TIMEOUT_SECONDS", 0.05)

    with pytest.raises(OperationTimeout) as exc:
        run(manager.submit_emergency(manager.build_submission(form()), [photo()], citizen))

    assert exc.value.data == {"retry": True, "retry_without_images": True}
    assert exc.value.status_code == 504
    assert store.reports == {}


def test_store_timeout_surfaces_as_operation_timeout(store, monkeypatch, citizen):
    from emergency_hub.emergencies import repository

    async def hanging_insert(*args):
        await asyncio.sleep(1)

    monkeypatch.setattr(repository, "insert_emergency", hanging_insert)
    monkeypatch.setattr(config, "STORE_TIMEOUT_SECONDS", 0.01)

    with pytest.raises(OperationTimeout) as exc:
        run(manager.submit_emergency(manager.build_submission(form()), [], citizen))

    assert exc.value.data["retry_without_images"] is False


def test_skip_images_submits_without_uploading(store, uploads, citizen):
    photos = [photo(f"p{i}.jpg") for i in range(6)]

    result = run(manager.submit_emergency(manager.build_submission(form()), photos, citizen, skip_images=True))

    assert uploads == []
    assert result.images == []
    assert result.emergency_id in store.reports
