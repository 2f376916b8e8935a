# -*- coding: utf-8 -*-
import logging
import multiprocessing
import os
import stat

from PIL import Image

from imgresize import worker
from imgresize.models import Candidate, OutcomeKind, PermissionAdjustment
from imgresize.worker import clear_readonly, process_candidate

from conftest import digest, image_size, make_image


def candidate_for(path, ext="jpg"):
    return Candidate(path=str(path), extension=ext, size=os.path.getsize(str(path)))


def test_large_image_is_resized_in_place_keeping_format(tmp_path, make_config):
    path = make_image(tmp_path / "wide.png", (200, 100), fmt="PNG")

    outcome = process_candidate(candidate_for(path, "png"), make_config())

    assert outcome.kind is OutcomeKind.RESIZED
    assert outcome.original_size == (200, 100)
    assert outcome.new_size == (64, 32)
    assert outcome.permission is PermissionAdjustment.NOT_NEEDED
    with Image.open(path) as img:
        assert img.format == "PNG"
        assert img.size == (64, 32)
    assert [name for name in os.listdir(str(tmp_path)) if name.endswith(".tmp")] == []


def test_jpeg_stays_jpeg(tmp_path, make_config):
    path = make_image(tmp_path / "photo.jpg", (160, 120), fmt="JPEG")

    outcome = process_candidate(candidate_for(path), make_config(quality=5))

    assert outcome.kind is OutcomeKind.RESIZED
    with Image.open(path) as img:
        assert img.format == "JPEG"
        assert img.size == (64, 48)


def test_image_within_bounds_is_untouched(tmp_path, make_config):
    path = make_image(tmp_path / "small.png", (64, 48), fmt="PNG")
    before = digest(path)

    outcome = process_candidate(candidate_for(path, "png"), make_config())

    assert outcome.kind is OutcomeKind.SKIPPED_DIMENSIONS
    assert digest(path) == before


def test_corrupt_file_is_left_untouched(tmp_path, make_config, caplog):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"definitely not a jpeg" * 50)
    before = digest(str(path))

    outcome = process_candidate(candidate_for(path), make_config())

    assert outcome.kind is OutcomeKind.ERROR
    assert outcome.reason
    assert digest(str(path)) == before
    assert f"Error with file: {path}" in caplog.text


def test_truncated_file_is_left_untouched(tmp_path, make_config):
    path = make_image(tmp_path / "cut.png", (200, 150), fmt="PNG", noise=True)
    with open(path, "rb") as f:
        data = f.read()
    with open(path, "wb") as f:
        f.write(data[:len(data) // 2])
    before = digest(path)

    outcome = process_candidate(candidate_for(path, "png"), make_config())

    assert outcome.kind is OutcomeKind.ERROR
    assert digest(path) == before


def test_readonly_file_is_made_writable_and_resized(tmp_path, make_config):
    path = make_image(tmp_path / "locked.png", (200, 100), fmt="PNG")
    os.chmod(path, 0o444)

    outcome = process_candidate(candidate_for(path, "png"), make_config())

    assert outcome.kind is OutcomeKind.RESIZED
    assert outcome.permission is PermissionAdjustment.CLEARED
    assert os.stat(path).st_mode & stat.S_IWUSR
    assert image_size(path) == (64, 32)


def test_permission_failure_still_attempts_write(tmp_path, make_config, monkeypatch):
    path = make_image(tmp_path / "locked.png", (200, 100), fmt="PNG")
    os.chmod(path, 0o444)

    real_chmod = os.chmod

    def refuse_on_original(target, mode, *args, **kwargs):
        if str(target) == path:
            raise PermissionError(1, "Operation not permitted")
        return real_chmod(target, mode, *args, **kwargs)

    monkeypatch.setattr(os, "chmod", refuse_on_original)

    outcome = process_candidate(candidate_for(path, "png"), make_config())

    assert outcome.permission is PermissionAdjustment.FAILED
    assert "not permitted" in outcome.permission_error
    # the rename replaces the directory entry, so the write itself can still succeed
    assert outcome.kind is OutcomeKind.RESIZED
    assert image_size(path) == (64, 32)


def test_write_failure_keeps_original(tmp_path, make_config, monkeypatch):
    path = make_image(tmp_path / "wide.png", (200, 100), fmt="PNG")
    before = digest(path)

    def fail_save(self, *args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Image.Image, "save", fail_save)

    outcome = process_candidate(candidate_for(path, "png"), make_config())

    assert outcome.kind is OutcomeKind.ERROR
    assert "disk full" in outcome.reason
    assert digest(path) == before
    assert os.listdir(str(tmp_path)) == ["wide.png"]


def test_clear_readonly_not_needed_for_writable_file(tmp_path):
    path = tmp_path / "file.bin"
    path.write_bytes(b"data")
    os.chmod(str(path), 0o644)

    assert clear_readonly(str(path)) == (PermissionAdjustment.NOT_NEEDED, None)


def test_symlinked_file_is_resized_through_the_link(tmp_path, make_config):
    real_dir = tmp_path / "real"
    scan_dir = tmp_path / "scan"
    real_dir.mkdir()
    scan_dir.mkdir()
    target = make_image(real_dir / "target.png", (200, 100), fmt="PNG")
    link = scan_dir / "link.png"
    os.symlink(target, str(link))

    outcome = process_candidate(candidate_for(link, "png"), make_config(input_dir=str(scan_dir)))

    assert outcome.kind is OutcomeKind.RESIZED
    assert os.path.islink(str(link))
    assert os.readlink(str(link)) == target
    assert image_size(target) == (64, 32)
    assert sorted(os.listdir(str(real_dir))) == ["target.png"]
    assert os.listdir(str(scan_dir)) == ["link.png"]


def test_hard_linked_file_keeps_its_links(tmp_path, make_config):
    first = make_image(tmp_path / "first.png", (200, 100), fmt="PNG")
    second = str(tmp_path / "second.png")
    os.link(first, second)

    outcome = process_candidate(candidate_for(first, "png"), make_config())

    assert outcome.kind is OutcomeKind.RESIZED
    assert os.stat(first).st_ino == os.stat(second).st_ino
    assert os.stat(first).st_nlink == 2
    assert image_size(second) == (64, 32)
    assert sorted(os.listdir(str(tmp_path))) == ["first.png", "second.png"]


def test_sixteen_bit_grayscale_resizes_with_gaussian(tmp_path, make_config):
    path = str(tmp_path / "deep.png")
    Image.new("I;16", (200, 100)).save(path)

    outcome = process_candidate(candidate_for(path, "png"), make_config(quality=4))

    assert outcome.kind is OutcomeKind.RESIZED
    assert image_size(path) == (64, 32)


def test_large_panoramas_are_not_rejected_as_decompression_bombs():
    assert Image.MAX_IMAGE_PIXELS >= 20000 * 9000


def test_lower_jpeg_quality_writes_smaller_files(tmp_path, make_config):
    low = make_image(tmp_path / "low.jpg", (320, 240), fmt="JPEG", noise=True)
    high = str(tmp_path / "high.jpg")
    with open(low, "rb") as src, open(high, "wb") as dst:
        dst.write(src.read())

    process_candidate(candidate_for(low), make_config(jpeg_quality=10))
    process_candidate(candidate_for(high), make_config(jpeg_quality=95))

    assert image_size(low) == image_size(high) == (64, 48)
    assert os.path.getsize(low) < os.path.getsize(high)


def test_queued_task_is_cancelled_once_shutdown_is_requested(tmp_path, make_config, monkeypatch):
    path = make_image(tmp_path / "wide.png", (200, 100), fmt="PNG")
    before = digest(path)
    monkeypatch.setattr(worker, "_stop_event", None)
    monkeypatch.setattr(worker.signal, "signal", lambda *args: None)
    opened = []
    monkeypatch.setattr(worker.Image, "open", lambda *args, **kwargs: opened.append(args))

    stop_event = multiprocessing.Event()
    stop_event.set()
    worker.init_worker(stop_event, logging.WARNING)
    outcome = worker.static_process_image_worker((candidate_for(path, "png"), make_config()))

    assert outcome.kind is OutcomeKind.CANCELLED
    assert opened == []
    assert digest(path) == before


def test_unset_stop_event_lets_work_proceed(tmp_path, make_config, monkeypatch):
    path = make_image(tmp_path / "wide.png", (200, 100), fmt="PNG")
    monkeypatch.setattr(worker, "_stop_event", None)
    monkeypatch.setattr(worker.signal, "signal", lambda *args: None)

    worker.init_worker(multiprocessing.Event(), logging.WARNING)
    outcome = worker.static_process_image_worker((candidate_for(path, "png"), make_config()))

    assert outcome.kind is OutcomeKind.RESIZED
