import pytest

from vetclinic.core.exceptions import NotFoundError, ValidationError
from vetclinic.services.image_service import LocalImageStorage, allowed_extension


@pytest.fixture
def storage(tmp_path) -> LocalImageStorage:
    return LocalImageStorage(tmp_path / "pets")


@pytest.mark.pet
class TestLocalImageStorage:
    def test_store_load_delete(self, storage):
        identifier = storage.store(b"\x89PNG-bytes", "Rex.PNG")

        assert identifier.endswith(".png")
        assert len(identifier) == 32 + len(".png")
        assert storage.load(identifier) == b"\x89PNG-bytes"

        storage.delete(identifier)
        with pytest.raises(NotFoundError):
            storage.load(identifier)

    def test_delete_missing_is_noop(self, storage):
        storage.delete("f" * 32 + ".jpg")

    def test_empty_upload_rejected(self, storage):
        with pytest.raises(ValidationError):
            storage.store(b"", "rex.png")

    @pytest.mark.parametrize("filename", ["rex.exe", "rex", "", "archive.tar.gz"])
    def test_unsupported_extension(self, filename):
        with pytest.raises(ValidationError):
            allowed_extension(filename)

    @pytest.mark.parametrize(
        "identifier", ["../etc/passwd", "abc.png", "f" * 32 + ".exe", ""]
    )
    def test_identifiers_outside_storage_rejected(self, storage, identifier):
        with pytest.raises(ValidationError):
            storage.load(identifier)
