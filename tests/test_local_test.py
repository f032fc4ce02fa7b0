"""Tests for the local pipeline runner script."""

import json
from io import BytesIO

import pytest
from PIL import Image

from scripts.local_test import build_batch, main
from tests.helpers import make_image_bytes, s3_record
from thumbs_service.records import RejectReason, Rejection, extract_reference


def _write_png(tmp_path, name: str) -> str:
    path = tmp_path / name
    path.write_bytes(make_image_bytes((60, 30)))
    return str(path)


def test_build_batch_from_paths(tmp_path) -> None:
    png = _write_png(tmp_path, "cat.png")
    records, store = build_batch([png], "local")
    assert [(r.event_name, r.container, r.key) for r in records] == [("ObjectCreated:Put", "local", "cat.png")]
    assert store.get("local", "cat.png") is not None


def test_build_batch_from_event_file(tmp_path) -> None:
    png = _write_png(tmp_path, "a.png")
    event_path = tmp_path / "event.json"
    event_path.write_text(
        json.dumps(
            {
                "Records": [
                    s3_record("ObjectRemoved:Delete", "photos", "a.png"),
                    s3_record(bucket="photos", key="albums/a.png"),
                    s3_record(bucket="", key="a.png"),
                ]
            }
        )
    )

    records, store = build_batch([png], "ignored", str(event_path))

    assert len(records) == 3
    assert extract_reference(records[0]) == Rejection(RejectReason.WRONG_EVENT_TYPE)
    assert extract_reference(records[2]) == Rejection(RejectReason.MISSING_CONTAINER)
    assert store.keys() == [("photos", "albums/a.png")]


def test_build_batch_missing_input(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        build_batch([str(tmp_path / "nope.png")], "local")


def test_main_replays_event_and_writes_thumbnails(tmp_path) -> None:
    png = _write_png(tmp_path, "a.png")
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"Records": [s3_record(bucket="photos", key="a.png"), s3_record(key="gone.png")]}))
    out = tmp_path / "out"

    main([png, "--event", str(event_path), "--output", str(out), "--size", "24"])

    thumb = Image.open(BytesIO((out / "photos-thumbs" / "a.png").read_bytes()))
    assert thumb.size == (24, 24)
    assert not (out / "photos-thumbs" / "gone.png").exists()


def test_main_requires_some_input(tmp_path) -> None:
    with pytest.raises(SystemExit):
        main(["--output", str(tmp_path)])
