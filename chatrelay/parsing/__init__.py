"""Document intake for summary requests.

Turns an uploaded .txt, .md or .pdf file into a single text payload that
the chat page sends as an ordinary user message.
"""

from chatrelay.parsing.document_parser import (
    DocumentContent,
    DocumentParseError,
    parse_document,
)

__all__ = ["DocumentContent", "DocumentParseError", "parse_document"]
