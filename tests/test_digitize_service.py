"""
Tests for the digitize service: one invocation from acquisition to link.

Async entrypoints are driven with asyncio.run; host callbacks are plain
coroutine functions recording what they were given.
"""

import asyncio
import io
import re
from datetime import datetime

import numpy as np
import pytest
from PIL import Image

from digitize import (
    DigitizeOutcome,
    ProcessedImage,
    digitize,
    digitize_clipboard,
    digitize_file,
    format_embed_link,
    process_from_clipboard,
    process_from_file,
    process_image_bytes,
    write_processed_image,
)
from errors import (
    DecodeError,
    EmptyInputError,
    FileSystemError,
    InvalidSettingValueError,
    LinkInsertionError,
    NoImageFoundError,
)
from processing import InkSettings, PixelBuffer
from settings_store import InkporterSettings
from sources import SourceImage, load_source_image

import digitize.service as service_module


def _note_photo_bytes() -> bytes:
    """A 40x30 light page with a dark square of 'ink'."""
    arr = np.full((30, 40, 3), 230, dtype=np.uint8)
    arr[10:20, 10:30] = 20
    out = io.BytesIO()
    Image.fromarray(arr).save(out, format="PNG")
    return out.getvalue()


def _acquire(data: bytes, name: str = "photo.png"):
    async def acquire():
        return SourceImage(data=data, name_hint=name)

    return acquire


async def _accept(image):
    return True


async def _reject(image):
    return False


def _png_files(directory):
    return sorted(p.name for p in directory.glob("*.png"))


class TestProcessImageBytes:
    """Tests for the decode -> process -> encode chain."""

    def test_produces_png_and_name(self):
        image = asyncio.run(
            process_image_bytes(
                _note_photo_bytes(), InkSettings(), now=datetime(2024, 1, 1)
            )
        )
        assert isinstance(image, ProcessedImage)
        assert image.png.startswith(b"\x89PNG")
        assert re.fullmatch(r"ink-20240101-[0-9a-f]{8}", image.file_name)
        assert image.pixels.size == (40, 30)

    def test_output_pixels_are_transparent_ink(self):
        image = asyncio.run(process_image_bytes(_note_photo_bytes(), InkSettings()))
        decoded = np.asarray(Image.open(io.BytesIO(image.png)))
        assert decoded.shape == (30, 40, 4)
        assert decoded[0, 0].tolist() == [255, 255, 255, 0]
        assert decoded[15, 15].tolist() == [20, 20, 20, 255]

    def test_custom_template(self):
        image = asyncio.run(
            process_image_bytes(
                _note_photo_bytes(),
                InkSettings(),
                file_name_template="page-{date}",
                now=datetime(2023, 12, 31),
            )
        )
        assert image.file_name_with_extension == "page-20231231.png"

    def test_empty_input_raises(self):
        with pytest.raises(EmptyInputError):
            asyncio.run(process_image_bytes(b"", InkSettings()))

    def test_garbage_raises(self):
        with pytest.raises(DecodeError):
            asyncio.run(process_image_bytes(b"\x00\x01garbage", InkSettings()))

    def test_invalid_settings_raise(self):
        with pytest.raises(InvalidSettingValueError):
            asyncio.run(
                process_image_bytes(_note_photo_bytes(), InkSettings(alpha_threshold=300))
            )


class TestDigitize:
    """Tests for the full invocation with host callbacks."""

    def test_saves_and_links(self, tmp_path):
        links = []

        async def insert_link(path):
            link = format_embed_link(path, tmp_path)
            links.append(link)
            return link

        outcome = asyncio.run(
            digitize(
                _acquire(_note_photo_bytes()),
                InkporterSettings(output_directory="Ink"),
                _accept,
                insert_link,
                root=tmp_path,
            )
        )
        assert outcome.status == "saved"
        assert outcome.saved_path.parent == tmp_path / "Ink"
        assert outcome.saved_path.read_bytes() == outcome.image.png
        assert outcome.link == links[0]
        assert links[0] == f"![[Ink/{outcome.saved_path.name}]]"

    def test_cancel_writes_nothing(self, tmp_path):
        outcome = asyncio.run(
            digitize(
                _acquire(_note_photo_bytes()),
                InkporterSettings(),
                _reject,
                root=tmp_path,
            )
        )
        assert outcome == DigitizeOutcome(status="cancelled")
        assert outcome.cancelled
        assert not (tmp_path / "FieldNotes").exists()

    def test_confirm_sees_processed_image(self, tmp_path):
        seen = []

        async def confirm(image):
            seen.append(image)
            return False

        asyncio.run(
            digitize(_acquire(_note_photo_bytes()), InkporterSettings(), confirm, root=tmp_path)
        )
        assert len(seen) == 1
        assert isinstance(seen[0].pixels, PixelBuffer)

    def test_settings_edit_during_confirm_does_not_apply(self, tmp_path):
        record = InkporterSettings(output_directory="First")

        async def confirm(image):
            record.output_directory = "Second"
            record.alpha_threshold = 0
            return True

        outcome = asyncio.run(
            digitize(_acquire(_note_photo_bytes()), record, confirm, root=tmp_path)
        )
        assert outcome.saved_path.parent == tmp_path / "First"
        assert outcome.image.metadata["transparency"]["metrics"]["ink_pixels"] == 200

    def test_directory_created(self, tmp_path):
        outcome = asyncio.run(
            digitize(
                _acquire(_note_photo_bytes()),
                InkporterSettings(output_directory="a/b/c"),
                _accept,
                root=tmp_path,
            )
        )
        assert (tmp_path / "a" / "b" / "c").is_dir()
        assert outcome.saved_path.exists()

    def test_file_in_place_of_directory_raises(self, tmp_path):
        (tmp_path / "FieldNotes").write_text("not a folder")
        with pytest.raises(FileSystemError, match="not a directory"):
            asyncio.run(
                digitize(
                    _acquire(_note_photo_bytes()),
                    InkporterSettings(),
                    _accept,
                    root=tmp_path,
                )
            )

    def test_link_failure_keeps_file(self, tmp_path):
        async def insert_link(path):
            raise RuntimeError("no active note")

        with pytest.raises(LinkInsertionError, match="no active note") as excinfo:
            asyncio.run(
                digitize(
                    _acquire(_note_photo_bytes()),
                    InkporterSettings(),
                    _accept,
                    insert_link,
                    root=tmp_path,
                )
            )
        assert excinfo.value.saved_path.exists()
        assert _png_files(tmp_path / "FieldNotes") == [excinfo.value.saved_path.name]

    def test_decode_failure_writes_nothing(self, tmp_path):
        with pytest.raises(DecodeError):
            asyncio.run(
                digitize(
                    _acquire(b"not an image", "broken.png"),
                    InkporterSettings(),
                    _accept,
                    root=tmp_path,
                )
            )
        assert not (tmp_path / "FieldNotes").exists()

    def test_concurrent_invocations_are_independent(self, tmp_path):
        async def run_both():
            return await asyncio.gather(
                digitize(
                    _acquire(_note_photo_bytes()),
                    InkporterSettings(output_directory="Dark"),
                    _accept,
                    root=tmp_path,
                ),
                digitize(
                    _acquire(_note_photo_bytes()),
                    InkporterSettings(output_directory="Light", invert_processing=True),
                    _accept,
                    root=tmp_path,
                ),
            )

        dark, light = asyncio.run(run_both())
        assert dark.image.metadata["transparency"]["metrics"]["ink_pixels"] == 200
        assert light.image.metadata["transparency"]["metrics"]["ink_pixels"] == 40 * 30 - 200


class TestCommandWrappers:
    """Tests for the clipboard/file command entrypoints."""

    def test_digitize_file(self, tmp_path):
        photo = tmp_path / "page.png"
        photo.write_bytes(_note_photo_bytes())
        outcome = asyncio.run(
            digitize_file(photo, InkporterSettings(), _accept, root=tmp_path)
        )
        assert outcome.saved_path.parent == tmp_path / "FieldNotes"
        assert outcome.image.source_name == "page.png"

    def test_digitize_clipboard(self, tmp_path):
        img = Image.open(io.BytesIO(_note_photo_bytes()))
        outcome = asyncio.run(
            digitize_clipboard(
                InkporterSettings(), _accept, root=tmp_path, grab=lambda: img
            )
        )
        assert outcome.status == "saved"
        assert outcome.image.source_name == "clipboard-image.png"

    def test_digitize_clipboard_without_image(self, tmp_path):
        with pytest.raises(NoImageFoundError):
            asyncio.run(
                digitize_clipboard(
                    InkporterSettings(), _accept, root=tmp_path, grab=lambda: None
                )
            )


class TestStorage:

    def _image(self, name="ink-1"):
        return ProcessedImage(
            png=b"\x89PNG fake",
            pixels=PixelBuffer(1, 1, bytes(4)),
            file_name=name,
        )

    def test_overwrites_existing_file(self, tmp_path):
        (tmp_path / "ink-1.png").write_bytes(b"old")
        path = write_processed_image(self._image(), tmp_path)
        assert path.read_bytes() == b"\x89PNG fake"

    def test_existing_directory_reused(self, tmp_path):
        write_processed_image(self._image("a"), tmp_path / "out")
        write_processed_image(self._image("b"), tmp_path / "out")
        assert _png_files(tmp_path / "out") == ["a.png", "b.png"]


class TestFormatEmbedLink:

    def test_relative_to_root(self, tmp_path):
        path = tmp_path / "FieldNotes" / "ink.png"
        assert format_embed_link(path, tmp_path) == "![[FieldNotes/ink.png]]"

    def test_without_root(self):
        assert format_embed_link("FieldNotes/ink.png") == "![[FieldNotes/ink.png]]"


class TestProcessCommands:
    """Tests for process_from_file/process_from_clipboard (no save)."""

    def test_process_from_file(self, tmp_path):
        photo = tmp_path / "page.png"
        photo.write_bytes(_note_photo_bytes())
        image = asyncio.run(process_from_file(photo, InkporterSettings(file_name_template="p")))
        assert image.file_name == "p"
        assert image.metadata["transparency"]["metrics"]["ink_pixels"] == 200
        assert list(tmp_path.iterdir()) == [photo]

    def test_process_from_clipboard_uses_record_settings(self):
        img = Image.open(io.BytesIO(_note_photo_bytes()))
        image = asyncio.run(
            process_from_clipboard(
                InkporterSettings(max_width=20), grab=lambda: img
            )
        )
        assert image.pixels.size == (20, 15)

    def test_clipboard_settings_taken_before_read(self):
        record = InkporterSettings()
        img = Image.open(io.BytesIO(_note_photo_bytes()))

        def grab():
            record.max_width = 10
            record.file_name_template = "changed"
            return img

        image = asyncio.run(process_from_clipboard(record, grab=grab))
        assert image.pixels.size == (40, 30)
        assert image.file_name != "changed"

    def test_file_settings_taken_before_read(self, tmp_path, monkeypatch):
        photo = tmp_path / "page.png"
        photo.write_bytes(_note_photo_bytes())
        record = InkporterSettings()

        def slow_read(path):
            record.invert_processing = True
            return load_source_image(path)

        monkeypatch.setattr(service_module, "load_source_image", slow_read)
        image = asyncio.run(process_from_file(photo, record))
        assert image.metadata["transparency"]["metrics"]["ink_pixels"] == 200
