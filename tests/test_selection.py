import pytest

from studio.selection import ImageSelection, SelectedImage, sniff_content_type

from conftest import PNG_1PX


def _img(name, content_type="image/png"):
    return SelectedImage.from_bytes(PNG_1PX, name=name, content_type=content_type)


def test_more_than_four_keeps_first_four_in_order():
    selection = ImageSelection()
    batch = [_img(f"{i}.png") for i in range(6)]

    accepted = selection.add(batch)

    assert [img.name for img in selection] == ["0.png", "1.png", "2.png", "3.png"]
    assert accepted == batch[:4]
    assert len(selection.previews) == 4


def test_combined_selection_is_truncated():
    selection = ImageSelection()
    selection.add([_img("a.png"), _img("b.png"), _img("c.png")])
    selection.add([_img("d.png"), _img("e.png")])

    assert [img.name for img in selection] == ["a.png", "b.png", "c.png", "d.png"]


def test_non_images_are_filtered():
    selection = ImageSelection()
    selection.add([_img("notes.txt", "text/plain"), _img("a.png"), _img("doc.pdf", "application/pdf")])

    assert [img.name for img in selection] == ["a.png"]


def test_remove_keeps_order_and_releases_preview():
    selection = ImageSelection()
    selection.add([_img("a.png"), _img("b.png"), _img("c.png")])
    preview = selection[1].preview_url

    removed = selection.remove(1)

    assert removed.name == "b.png"
    assert [img.name for img in selection] == ["a.png", "c.png"]
    assert not selection.previews.is_live(preview)
    assert removed.preview_url is None


def test_clear_releases_all_previews():
    selection = ImageSelection()
    selection.add([_img("a.png"), _img("b.png")])

    selection.clear()

    assert len(selection) == 0
    assert len(selection.previews) == 0


def test_replace_mode_swaps_single_image():
    selection = ImageSelection(max_images=1, replace=True)
    selection.add([_img("first.png")])
    old_preview = selection[0].preview_url

    selection.add([_img("second.png"), _img("third.png")])

    assert [img.name for img in selection] == ["second.png"]
    assert not selection.previews.is_live(old_preview)
    assert selection.previews.resolve(selection[0].preview_url).name == "second.png"


def test_replace_mode_ignores_batches_without_images():
    selection = ImageSelection(max_images=1, replace=True)
    selection.add([_img("keep.png")])

    selection.add([_img("notes.txt", "text/plain")])

    assert [img.name for img in selection] == ["keep.png"]


def test_invalid_max_images():
    with pytest.raises(ValueError):
        ImageSelection(max_images=5)


def test_content_type_detection(tmp_path):
    assert sniff_content_type(PNG_1PX) == "image/png"
    assert sniff_content_type(b"plain text") == "application/octet-stream"
    assert SelectedImage.from_bytes(PNG_1PX).content_type == "image/png"

    named = tmp_path / "photo.jpg"
    named.write_bytes(b"whatever")
    assert SelectedImage.from_path(named).content_type == "image/jpeg"

    unnamed = tmp_path / "upload"
    unnamed.write_bytes(PNG_1PX)
    assert SelectedImage.from_path(unnamed).content_type == "image/png"
