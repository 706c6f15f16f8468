"""Attached-file context assembly for chat turns."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

logger = logging.getLogger(__name__)

# Metadata keys that mark a file as structured (spreadsheet, deck, paged doc)
STRUCTURE_KEYS = ("sheetNames", "sheets", "sheetCount", "slideCount", "pages")

# Single-file metadata forwarded so the provider can pick a file-type prompt
FORWARDED_KEYS = ("type", "sheetCount", "slideCount", "pages")


@dataclass
class FileContextSource:
    """One attached file as loaded for a chat turn."""

    filename: str
    file_type: str
    content: str | None = None
    metadata: dict[str, Any] | None = None
    image_data: dict[str, Any] | str | None = None


@dataclass
class ContextBlock:
    filename: str
    content: str


@dataclass
class ChatContext:
    """Text context, vision payloads and file metadata for the LLM call."""

    text: str | None
    images: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


def _load_json(value: Any, what: str, filename: str) -> dict[str, Any] | None:
    if value is None or isinstance(value, dict):
        return value
    try:
        loaded = json.loads(value)
    except (TypeError, ValueError):
        logger.error("Could not parse %s for %s", what, filename)
        return None
    return loaded if isinstance(loaded, dict) else None


def is_structured(metadata: dict[str, Any] | None) -> bool:
    return bool(metadata) and any(metadata.get(key) for key in STRUCTURE_KEYS)


def combine_blocks(blocks: Sequence[ContextBlock]) -> str | None:
    """Join blocks into one context string.

    A single block is passed through as-is. Several blocks each get a
    ``=== filename ===`` header and are separated by a blank line.
    """
    if not blocks:
        return None
    if len(blocks) == 1:
        return blocks[0].content
    return "\n\n".join(f"=== {block.filename} ===\n{block.content}\n" for block in blocks)


def build_chat_context(
    files: Sequence[FileContextSource],
    requested_count: int | None = None,
) -> ChatContext:
    """Assemble the LLM context for the given files.

    Args:
        files: Files owned by the caller, in request order
        requested_count: Number of file ids the request named; defaults to len(files)
    """
    blocks: list[ContextBlock] = []
    images: list[dict[str, Any]] = []
    file_types: list[str] = []

    for source in files:
        file_types.append(source.file_type)

        if source.file_type.startswith("image/"):
            image = _load_json(source.image_data, "image data", source.filename)
            if image:
                images.append({"filename": source.filename, **image})
            continue

        if source.content:
            blocks.append(ContextBlock(filename=source.filename, content=source.content))

        metadata = _load_json(source.metadata, "metadata", source.filename)
        if is_structured(metadata):
            blocks.append(
                ContextBlock(
                    filename=f"{source.filename} (metadata)",
                    content=f"File structure: {json.dumps(metadata, indent=2, default=str)}",
                )
            )

    file_count = requested_count if requested_count is not None else len(files)
    metadata: dict[str, Any] = {
        "file_count": file_count,
        "file_types": file_types,
        "is_multi_file": file_count > 1,
    }
    if len(files) == 1:
        single = _load_json(files[0].metadata, "metadata", files[0].filename) or {}
        metadata.update({key: single[key] for key in FORWARDED_KEYS if key in single})
        if "type" not in metadata and files[0].file_type.startswith("image/"):
            metadata["type"] = "image"

    return ChatContext(text=combine_blocks(blocks), images=images, metadata=metadata)
