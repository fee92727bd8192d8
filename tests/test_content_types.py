import io
import json
import zipfile

import pytest

from pollwatch import content_types
from pollwatch.content_types import ContentType, from_extension, is_supported, resolve, sniff


def _write_zip(path):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("inner.txt", "hello")
    path.write_bytes(buffer.getvalue())


def test_empty_json_file_falls_back_to_extension(tmp_path):
    target = tmp_path / "data.json"
    target.write_bytes(b"")

    assert sniff(target) == ContentType.EMPTY.value
    assert resolve(target) == ContentType.JSON.value


def test_empty_zip_file_falls_back_to_extension(tmp_path):
    target = tmp_path / "b.zip"
    target.write_bytes(b"")

    assert resolve(target) == ContentType.ZIP.value


@pytest.mark.parametrize(
    "name, expected",
    [
        ("photo.JPG", ContentType.JPEG.value),
        ("photo.jpeg", ContentType.JPEG.value),
        ("doc.jsonld", ContentType.JSON_LD.value),
        ("notes.TXT", ContentType.TXT.value),
        ("bundle.bin", ContentType.EMPTY.value),
        ("noextension", ContentType.EMPTY.value),
    ],
)
def test_extension_mapping_is_case_insensitive(name, expected):
    assert from_extension(name) == expected


def test_sniffs_real_zip_regardless_of_extension(tmp_path):
    target = tmp_path / "archive.dat"
    _write_zip(target)

    assert resolve(target) == ContentType.ZIP.value


def test_sniffs_jpeg_signature(tmp_path):
    target = tmp_path / "image"
    target.write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 32)

    assert resolve(target) == ContentType.JPEG.value


def test_sniffs_text_and_json(tmp_path):
    text = tmp_path / "a.txt"
    text.write_text("hello world\n")
    document = tmp_path / "payload"
    document.write_text('{"key": [1, 2, 3]}')

    assert resolve(text) == ContentType.TXT.value
    assert resolve(document) == ContentType.JSON.value


def test_unknown_binary_with_unknown_extension_is_unsupported(tmp_path):
    target = tmp_path / "blob.bin"
    target.write_bytes(b"\x00\x01\x02\x03\xfe")

    mime_type = resolve(target)

    assert mime_type == ContentType.EMPTY.value
    assert not is_supported(mime_type)


def test_missing_file_resolves_by_extension(tmp_path):
    assert resolve(tmp_path / "vanished.txt") == ContentType.TXT.value


def test_is_supported():
    assert is_supported("text/plain")
    assert is_supported("application/x-zip-compressed")
    assert not is_supported("application/x-empty")
    assert not is_supported("video/mp4")


def test_large_text_starting_with_bracket_is_plain_text(tmp_path):
    log = tmp_path / "server.log"
    log.write_text("[INFO] started\n" * 1000)

    assert resolve(log) == ContentType.TXT.value


def test_large_valid_json_is_parsed_beyond_sniff_window(tmp_path):
    document = tmp_path / "export"
    document.write_text(json.dumps([{"id": index, "name": "x" * 20} for index in range(1000)]))

    assert document.stat().st_size > 8192
    assert resolve(document) == ContentType.JSON.value


def test_json_too_large_to_validate_uses_extension(tmp_path, monkeypatch):
    monkeypatch.setattr(content_types, "JSON_LIMIT", 100)
    body = json.dumps({"values": list(range(100))})
    named = tmp_path / "big.jsonld"
    named.write_text(body)
    unnamed = tmp_path / "big"
    unnamed.write_text(body)

    assert resolve(named) == ContentType.JSON_LD.value
    assert resolve(unnamed) == ContentType.TXT.value


def test_latin1_text_without_extension_is_plain_text(tmp_path):
    target = tmp_path / "README"
    target.write_bytes("café crème brûlée\n".encode("latin-1"))

    assert resolve(target) == ContentType.TXT.value
