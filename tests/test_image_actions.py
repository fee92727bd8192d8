from PIL import Image

from pollwatch.events import ChangeKind
from pollwatch.image_actions import optimize_jpeg
from pollwatch.registry import HandlerContext


def _context(path, ledger, kind=ChangeKind.CREATED):
    return HandlerContext(kind=kind, path=str(path), content_type="image/jpeg", ledger=ledger)


def test_optimize_jpeg_writes_marked_copy(tmp_path, ledger):
    source = tmp_path / "photo.jpg"
    Image.new("RGB", (64, 48), color=(200, 30, 30)).save(source, format="JPEG", quality=100)

    optimize_jpeg(_context(source, ledger), {})

    target = tmp_path / "optimized_photo.jpg"
    assert target.exists()
    assert str(target) in ledger
    with Image.open(target) as optimized:
        assert optimized.format == "JPEG"
        assert optimized.size == (64, 48)


def test_optimize_jpeg_converts_palette_images(tmp_path, ledger):
    source = tmp_path / "palette.jpg"
    Image.new("P", (8, 8)).save(tmp_path / "palette.png")
    (tmp_path / "palette.png").rename(source)

    optimize_jpeg(_context(source, ledger, kind=ChangeKind.MODIFIED), {"quality": 60})

    assert (tmp_path / "optimized_palette.jpg").exists()


def test_optimize_jpeg_skips_its_own_output(tmp_path, ledger):
    source = tmp_path / "optimized_photo.jpg"
    Image.new("RGB", (4, 4)).save(source, format="JPEG")

    optimize_jpeg(_context(source, ledger), {})

    assert not (tmp_path / "optimized_optimized_photo.jpg").exists()


def test_optimize_jpeg_logs_unreadable_images(tmp_path, ledger, caplog):
    source = tmp_path / "broken.jpg"
    source.write_bytes(b"\xff\xd8\xff not an image")

    optimize_jpeg(_context(source, ledger), {})

    assert not (tmp_path / "optimized_broken.jpg").exists()
    assert len(ledger) == 0
    assert "Could not load image" in caplog.text


def test_optimize_jpeg_ignores_deletions(tmp_path, ledger):
    optimize_jpeg(_context(tmp_path / "gone.jpg", ledger, kind=ChangeKind.DELETED), {})

    assert list(tmp_path.iterdir()) == []


def test_optimize_jpeg_closes_converted_copy(tmp_path, ledger, monkeypatch):
    source = tmp_path / "palette.jpg"
    Image.new("P", (8, 8)).save(tmp_path / "palette.png")
    (tmp_path / "palette.png").rename(source)
    closed = []
    original_close = Image.Image.close

    def recording_close(self):
        closed.append(self.mode)
        original_close(self)

    monkeypatch.setattr(Image.Image, "close", recording_close)

    optimize_jpeg(_context(source, ledger), {})

    assert "RGB" in closed
