"""Tests for attached-file context assembly."""

import json

from filementor.core.context import ContextBlock, FileContextSource, build_chat_context, combine_blocks


def test_single_block_has_no_header():
    assert combine_blocks([ContextBlock("a.pdf", "Alpha")]) == "Alpha"


def test_multiple_blocks_are_headed_and_separated():
    text = combine_blocks([ContextBlock("a.pdf", "Alpha"), ContextBlock("b.pdf", "Beta")])
    assert text == "=== a.pdf ===\nAlpha\n\n\n=== b.pdf ===\nBeta\n"


def test_no_files():
    context = build_chat_context([])
    assert context.text is None
    assert context.images == []
    assert context.metadata == {"file_count": 0, "file_types": [], "is_multi_file": False}


def test_spreadsheet_adds_metadata_block():
    metadata = {"type": "spreadsheet", "sheetCount": 2, "sheetNames": ["Q1", "Q2"]}
    source = FileContextSource(
        filename="sales.xlsx",
        file_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        content="--- Sheet 1: Q1 ---\nRow 1: a | b",
        metadata=metadata,
    )

    context = build_chat_context([source])

    assert context.text.startswith("=== sales.xlsx ===\n--- Sheet 1: Q1 ---")
    assert "=== sales.xlsx (metadata) ===\nFile structure: " in context.text
    assert json.dumps(metadata, indent=2) in context.text
    assert context.metadata["type"] == "spreadsheet"
    assert context.metadata["sheetCount"] == 2
    assert context.metadata["is_multi_file"] is False


def test_metadata_stored_as_json_string_is_parsed():
    source = FileContextSource(
        filename="deck.pptx",
        file_type="application/vnd.openxmlformats-officedocument.presentationml.presentation",
        content="--- Slide 1 ---",
        metadata=json.dumps({"type": "presentation", "slideCount": 4}),
    )

    context = build_chat_context([source])

    assert context.metadata["slideCount"] == 4
    assert "(metadata)" in context.text


def test_image_never_enters_text():
    image = FileContextSource(
        filename="chart.png",
        file_type="image/png",
        content="should not appear",
        image_data={"data": "AAAA", "mimeType": "image/png"},
    )
    doc = FileContextSource(filename="notes.pdf", file_type="application/pdf", content="Notes")

    context = build_chat_context([image, doc])

    assert context.text == "Notes"
    assert context.images == [{"filename": "chart.png", "data": "AAAA", "mimeType": "image/png"}]
    assert context.metadata["file_types"] == ["image/png", "application/pdf"]
    assert context.metadata["is_multi_file"] is True


def test_single_image_is_typed_as_image():
    image = FileContextSource(
        filename="photo.jpg",
        file_type="image/jpeg",
        image_data={"data": "AAAA", "mimeType": "image/jpeg"},
    )

    context = build_chat_context([image])

    assert context.text is None
    assert context.metadata["type"] == "image"


def test_requested_count_drives_multi_file_flag():
    doc = FileContextSource(filename="a.pdf", file_type="application/pdf", content="A")

    context = build_chat_context([doc], requested_count=2)

    assert context.metadata["file_count"] == 2
    assert context.metadata["is_multi_file"] is True
