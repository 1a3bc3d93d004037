from pathlib import Path

import pytest

from conftest import RECIPE_PAGE
from recipe_book.errors import Forbidden, InvalidAnalysisInput
from recipe_book.images import (
    InvalidImage,
    MAX_IMAGE_BYTES,
    delete_image,
    image_owner,
    save_image,
)
from recipe_book.webpage import html_to_text, validate_url


def test_html_to_text_drops_page_chrome() -> None:
    text = html_to_text(RECIPE_PAGE)
    assert text.splitlines()[:2] == ["Lemon Cake", "Lemon Cake"]
    assert "200g flour" in text
    assert "var tracking" not in text
    assert "Home | Recipes" not in text


@pytest.mark.parametrize("url", ("example.com/cake", "ftp://example.com", "https://", ""))
def test_validate_url_rejects(url: str) -> None:
    with pytest.raises(InvalidAnalysisInput):
        validate_url(url)


def test_validate_url_strips() -> None:
    assert validate_url(" https://example.com/cake ") == "https://example.com/cake"


def test_save_and_delete_image(tmp_path: Path) -> None:
    url, path = save_image(
        b"GIF89a", content_type="image/gif", uploads_dir=tmp_path, owner="alice"
    )
    assert url == f"/uploads/{path}"
    assert path.startswith("alice/")
    assert path.endswith(".gif")
    assert image_owner(path) == "alice"
    assert (tmp_path / path).read_bytes() == b"GIF89a"

    assert delete_image(path, uploads_dir=tmp_path) is True
    assert delete_image(path, uploads_dir=tmp_path) is False


@pytest.mark.parametrize(
    "content,content_type,message",
    (
        (b"hello", "text/plain", "Invalid file type. Please upload an image."),
        (b"", "image/png", "The uploaded file is empty."),
        (b"x" * (MAX_IMAGE_BYTES + 1), "image/png", "File too large. Maximum size is 5MB."),
    ),
)
def test_save_image_rejects(
    tmp_path: Path, content: bytes, content_type: str, message: str
) -> None:
    with pytest.raises(InvalidImage) as e:
        save_image(
            content, content_type=content_type, uploads_dir=tmp_path, owner="alice"
        )
    assert e.value.message == message


def test_delete_image_stays_in_uploads(tmp_path: Path) -> None:
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    (tmp_path / "secret.txt").write_text("keep")
    with pytest.raises(InvalidImage):
        delete_image("../secret.txt", uploads_dir=uploads)
    with pytest.raises(InvalidImage):
        delete_image("alice/../../secret.txt", uploads_dir=uploads)
    assert (tmp_path / "secret.txt").exists()


def test_delete_image_checks_owner(tmp_path: Path) -> None:
    _, path = save_image(
        b"GIF89a", content_type="image/gif", uploads_dir=tmp_path, owner="alice"
    )
    with pytest.raises(Forbidden):
        delete_image(path, uploads_dir=tmp_path, owner="bob")
    assert (tmp_path / path).exists()
    assert delete_image(path, uploads_dir=tmp_path, owner="alice") is True


@pytest.mark.parametrize("path", ("cake.png", "/alice/cake.png", "../cake.png", "a/b/c.png"))
def test_image_owner_rejects_foreign_paths(path: str) -> None:
    assert image_owner(path) is None
