import pytest

from rhetor.errors import DuplicateUpload, ForbiddenError, NotFoundError, ValidationError
from rhetor.services.storage import ObjectStorage, content_type_for


@pytest.fixture
def storage(tmp_path):
    return ObjectStorage(
        root=tmp_path,
        buckets=("rhetor-audio",),
        signing_secret="secret",
        public_base_url="http://localhost/api/v1/",
    )


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a/b.m4a", "audio/mp4"),
        ("aac", "audio/aac"),
        ("x.MP3", "audio/mpeg"),
        ("x.wav", "audio/wav"),
        ("x.caf", "audio/x-caf"),
        ("x.ogg", "audio/ogg"),
        ("x.flac", "application/octet-stream"),
    ],
)
def test_content_type_for(name, expected):
    assert content_type_for(name) == expected


def test_upload_never_overwrites(storage):
    storage.upload("rhetor-audio", "u1/s1.m4a", b"first")

    with pytest.raises(DuplicateUpload):
        storage.upload("rhetor-audio", "u1/s1.m4a", b"second")
    assert storage.open_path("rhetor-audio", "u1/s1.m4a").read_bytes() == b"first"


def test_rejects_bad_targets(storage):
    with pytest.raises(NotFoundError):
        storage.upload("other-bucket", "u1/s1.m4a", b"x")
    with pytest.raises(ValidationError):
        storage.upload("rhetor-audio", "u1/../../etc/passwd", b"x")
    with pytest.raises(ValidationError):
        storage.upload("rhetor-audio", "u1/empty.m4a", b"")


def test_signed_url_roundtrip_and_expiry(storage):
    url = storage.create_signed_url("rhetor-audio", "u1/s1.m4a", 120, now=1_000)
    assert url.startswith("http://localhost/api/v1/storage/sign/rhetor-audio/u1/s1.m4a?")
    token = url.split("token=")[1]

    storage.verify_signature("rhetor-audio", "u1/s1.m4a", 1_120, token, now=1_050)
    with pytest.raises(ForbiddenError):
        storage.verify_signature("rhetor-audio", "u1/s1.m4a", 1_120, token, now=1_121)
    with pytest.raises(ForbiddenError):
        storage.verify_signature("rhetor-audio", "u1/s2.m4a", 1_120, token, now=1_050)
