from __future__ import annotations

import io
import json

import pytest
from cryptography.fernet import InvalidToken
from PIL import Image

from signature.logic.artifact_renderer import hex_to_rgb, render_png_from_strokes, render_png_from_text
from signature.logic.encryption import KeyRing
from signature.models.signature_artifact import ArtifactMetadata
from signature.models.signature_enums import ArtifactKind
from signature.repository.artifact_repository import SQLiteArtifactRepository


@pytest.fixture
def repo(tmp_path):
    r = SQLiteArtifactRepository(tmp_path / "a.db", KeyRing(tmp_path / "keys.json"))
    yield r
    r.close()


def _png() -> bytes:
    return render_png_from_strokes([[(5, 5), (60, 30), (110, 10)]], (120, 40))


def test_image_is_encrypted_at_rest(repo) -> None:
    png = _png()
    artifact = repo.add(
        owner_id="u1", name="Scribble", kind=ArtifactKind.DRAWN,
        metadata=ArtifactMetadata(full_name="Alice"), image_png=png,
    )

    raw = repo.conn.execute(
        "SELECT image_token FROM signature_artifacts WHERE artifact_id = ?", (artifact.artifact_id,)
    ).fetchone()["image_token"]

    assert png not in bytes(raw)
    assert repo.get(artifact.artifact_id).image_png == png


def test_list_and_delete_are_owner_scoped(repo) -> None:
    meta = ArtifactMetadata(full_name="Alice", organization="ACME", location="Berlin", time_zone="Europe/Berlin")
    a = repo.add(owner_id="u1", name="A", kind=ArtifactKind.TYPED, metadata=meta)
    repo.add(owner_id="u2", name="B", kind=ArtifactKind.TYPED, metadata=meta)

    [mine] = repo.list_for_owner("u1")
    assert mine.artifact_id == a.artifact_id
    assert mine.metadata == meta
    assert not mine.has_image

    assert repo.delete(a.artifact_id)
    assert not repo.delete(a.artifact_id)
    assert repo.get(a.artifact_id) is None


def test_rotated_key_ring_still_decrypts_old_images(tmp_path) -> None:
    ring = KeyRing(tmp_path / "keys.json")
    token = ring.encrypt(b"payload")

    ring.rotate()

    stored = json.loads((tmp_path / "keys.json").read_text())
    assert len(stored["legacy"]) == 1
    assert ring.decrypt(token) == b"payload"
    assert ring.decrypt(ring.encrypt(b"new")) == b"new"


def test_foreign_key_ring_cannot_decrypt(tmp_path) -> None:
    token = KeyRing(tmp_path / "one.json").encrypt(b"secret")
    with pytest.raises(InvalidToken):
        KeyRing(tmp_path / "two.json").decrypt(token)


def test_unreadable_image_degrades_to_text_artifact(tmp_path) -> None:
    db = tmp_path / "a.db"
    first = SQLiteArtifactRepository(db, KeyRing(tmp_path / "one.json"))
    artifact = first.add(
        owner_id="u1", name="Scribble", kind=ArtifactKind.DRAWN,
        metadata=ArtifactMetadata(full_name="Alice"), image_png=_png(),
    )
    first.close()

    second = SQLiteArtifactRepository(db, KeyRing(tmp_path / "other.json"))
    loaded = second.get(artifact.artifact_id)
    second.close()

    assert loaded is not None
    assert not loaded.has_image


def test_stroke_rendering_is_transparent_png() -> None:
    img = Image.open(io.BytesIO(_png()))
    assert img.mode == "RGBA"
    assert img.size == (120, 40)
    assert img.getpixel((0, 39))[3] == 0


def test_stroke_rendering_rejects_empty_input() -> None:
    with pytest.raises(ValueError):
        render_png_from_strokes([[]], (100, 40))


def test_typed_rendering_crops_to_text() -> None:
    img = Image.open(io.BytesIO(render_png_from_text("Alice Example", font_size=40)))
    assert img.width > img.height > 0
    with pytest.raises(ValueError):
        render_png_from_text("   ")


def test_hex_colors() -> None:
    assert hex_to_rgb("#0a0") == (0, 170, 0)
    assert hex_to_rgb("336699") == (0x33, 0x66, 0x99)
