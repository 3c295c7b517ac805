"""AI helpers students use on shared content: summary and translation."""

from __future__ import annotations

import logging

from classroom_app.core.documents.document_converter import decode_file_data, extract_text
from classroom_app.core.errors import ClassroomValidationError, ConversionError, UnsupportedDocumentError
from classroom_app.core.generation import content_generator
from classroom_app.core.generation.text_generator import TextGenerator
from classroom_app.core.models import FileContent, ImageContent, SharedContent, TextContent

logger = logging.getLogger(__name__)

NO_CONTENT_MESSAGE = "Content not available for AI processing."


def content_text(item: SharedContent, generator: TextGenerator) -> str:
    """Return the text an AI helper should work on for ``item``.

    Files that fail to convert fall back to their description; images are
    described by the text-generation service.
    """
    if isinstance(item, TextContent):
        return item.content or item.description
    if isinstance(item, ImageContent):
        return content_generator.describe_image(generator, decode_file_data(item.file_data), item.mime_type)
    if isinstance(item, FileContent):
        try:
            return extract_text(decode_file_data(item.file_data), item.mime_type)
        except UnsupportedDocumentError:
            pass
        except ConversionError as exc:
            logger.error("Error extracting text from %s: %s", item.file_name, exc)
            return f"Error extracting content from {item.file_name}. Using description instead. {item.description}"
    return item.description or NO_CONTENT_MESSAGE


def summarize(item: SharedContent, generator: TextGenerator) -> str:
    text = content_text(item, generator)
    if not text.strip():
        raise ClassroomValidationError("Could not extract any text to summarize.")
    return content_generator.summarize_text(generator, text)


def translate(item: SharedContent, language: str, generator: TextGenerator) -> str:
    if not language.strip():
        raise ClassroomValidationError("Please choose a language.")
    text = content_text(item, generator)
    if not text.strip():
        raise ClassroomValidationError("Could not extract any text to translate.")
    return content_generator.translate_text(generator, text, language.strip())
