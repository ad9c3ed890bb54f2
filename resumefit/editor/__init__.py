from .export import ContactInfo, ExportDocument, build_export_document
from .sections import (
    ALWAYS_PRESENT_IDS,
    HEADER_PATTERNS,
    Section,
    default_sections,
    match_header,
    parse_resume_into_sections,
)
from .session import EditorSession, ReanalysisInProgress

__all__ = [
    "ALWAYS_PRESENT_IDS",
    "HEADER_PATTERNS",
    "Section",
    "default_sections",
    "match_header",
    "parse_resume_into_sections",
    "EditorSession",
    "ReanalysisInProgress",
    "ContactInfo",
    "ExportDocument",
    "build_export_document",
]
