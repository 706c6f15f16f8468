"""System prompt and suggestion tables shared by all providers."""

from pathlib import Path
from typing import Any

BASE_SYSTEM_PROMPT = (
    "You are FileMentor, an AI assistant that helps users understand and analyze "
    "documents, spreadsheets, presentations, and images."
)

RESPONSE_GUIDANCE = (
    "Provide helpful, accurate, and contextual responses based on the document content. "
    "Use formatting like bullet points, numbered lists, and headers when appropriate "
    "to make your responses clear and readable."
)

IMAGE_NOT_SUPPORTED = "Image analysis is not supported with Groq. Please use text-based queries."


def _file_type_guidance(metadata: dict[str, Any]) -> str | None:
    match metadata.get("type"):
        case "spreadsheet":
            return (
                f"You are analyzing an Excel spreadsheet with {metadata.get('sheetCount') or 0} sheets. "
                "You can help with:\n"
                "- Data analysis and insights\n"
                "- Chart and graph suggestions\n"
                "- Formula explanations\n"
                "- Data visualization recommendations\n"
                "- Statistical analysis of the data\n"
                "- Identifying trends and patterns"
            )
        case "presentation":
            return (
                f"You are analyzing a PowerPoint presentation with {metadata.get('slideCount') or 0} slides. "
                "You can help with:\n"
                "- Summarizing presentation content\n"
                "- Analyzing slide structure and flow\n"
                "- Suggesting improvements to presentations\n"
                "- Extracting key points and themes\n"
                "- Understanding the presentation's narrative"
            )
        case "pdf":
            return (
                f"You are analyzing a PDF document with {metadata.get('pages') or 0} pages. "
                "You can help with:\n"
                "- Document summarization\n"
                "- Key point extraction\n"
                "- Content analysis\n"
                "- Question answering about the content"
            )
        case "document":
            return (
                "You are analyzing a Word document. You can help with:\n"
                "- Content analysis and summarization\n"
                "- Writing improvement suggestions\n"
                "- Structure analysis\n"
                "- Key information extraction"
            )
        case "image":
            return (
                "You are analyzing an image file. You can help with:\n"
                "- Describing visual content\n"
                "- Reading and interpreting text in images\n"
                "- Analyzing charts, diagrams, or infographics\n"
                "- Identifying objects and scenes"
            )
    return None


def build_system_prompt(
    text_context: str | None,
    metadata: dict[str, Any] | None,
    max_context_chars: int,
) -> str:
    """System prompt with file-type guidance and the truncated file context."""
    parts = [BASE_SYSTEM_PROMPT]

    guidance = _file_type_guidance(metadata) if metadata else None
    if guidance:
        parts.append(guidance)
    if metadata and metadata.get("is_multi_file"):
        parts.append(
            f"The user attached {metadata.get('file_count')} files. Each file's content "
            "starts with a '=== filename ===' header; say which file you are referring to."
        )

    if text_context:
        truncated = text_context[:max_context_chars]
        if len(text_context) > max_context_chars:
            truncated += "..."
        parts.append(f"Content from the uploaded file:\n{truncated}")

    parts.append(RESPONSE_GUIDANCE)
    return "\n\n".join(parts)


def build_image_prompt(text_context: str | None, metadata: dict[str, Any] | None) -> str:
    parts = [
        "You are FileMentor, an AI assistant specialized in analyzing images and documents. "
        "You can see and analyze images directly. Provide helpful, detailed responses about "
        "what you observe."
    ]
    if text_context:
        parts.append(f"Text extracted from the attached files:\n{text_context}")
    if metadata:
        parts.append(f"Additional metadata: {metadata}")
    parts.append(
        "Answer the user's question about the image. Be descriptive and helpful. If there's "
        "text in the image, help interpret and analyze it."
    )
    return "\n\n".join(parts)


SUGGESTIONS: dict[str, list[str]] = {
    "pdf": [
        "Summarize the main points of this document",
        "What are the key takeaways?",
        "Extract important data or statistics",
        "Explain complex concepts in simple terms",
        "Create an outline of the document structure",
    ],
    "image": [
        "What do you see in this image?",
        "Describe the main elements and details",
        "Extract and explain any text in the image",
        "What insights can you provide about this image?",
        "Analyze the visual composition and style",
    ],
    "docx": [
        "Summarize this document",
        "What are the main arguments presented?",
        "Extract key quotes or important sections",
        "Analyze the document structure",
        "Identify the main themes and topics",
    ],
    "spreadsheet": [
        "What data is contained in this spreadsheet?",
        "Analyze the trends and patterns in the data",
        "What are the key statistics and insights?",
        "Suggest charts or visualizations for this data",
        "Explain the relationships between different data columns",
        "What business insights can be drawn from this data?",
    ],
    "presentation": [
        "Summarize the main points of this presentation",
        "What is the key message or theme?",
        "Analyze the presentation structure and flow",
        "Extract key takeaways from each slide",
        "What are the main conclusions or recommendations?",
        "Suggest improvements for this presentation",
    ],
    "default": [
        "Tell me about this file",
        "What are the main topics covered?",
        "Provide a summary",
        "What questions should I ask about this content?",
    ],
}

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg"}


def build_suggestions(suggestion_type: str, metadata: dict[str, Any] | None = None) -> list[str]:
    suggestions = list(SUGGESTIONS.get(suggestion_type, SUGGESTIONS["default"]))
    if metadata:
        if suggestion_type == "spreadsheet" and (metadata.get("sheetCount") or 0) > 1:
            suggestions.append("Compare data across different sheets")
        if suggestion_type == "presentation" and (metadata.get("slideCount") or 0) > 10:
            suggestions.append("Break down this presentation by sections")
    return suggestions


def suggestion_type_for(file_type: str | None, filename: str | None) -> str:
    """Classify a file into a suggestion table key."""
    file_type = file_type or ""
    ext = Path(filename or "").suffix.lower()

    if file_type.startswith("image/") or ext in IMAGE_EXTENSIONS:
        return "image"
    if file_type == "application/pdf" or ext == ".pdf":
        return "pdf"
    if "wordprocessing" in file_type or file_type == "application/msword" or ext in (".docx", ".doc"):
        return "docx"
    if "spreadsheet" in file_type or file_type == "application/vnd.ms-excel" or ext in (".xlsx", ".xls"):
        return "spreadsheet"
    if (
        "presentation" in file_type
        or file_type == "application/vnd.ms-powerpoint"
        or ext in (".pptx", ".ppt")
    ):
        return "presentation"
    return "default"
