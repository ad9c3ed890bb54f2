from __future__ import annotations

from pydantic import BaseModel, Field

from resumefit.editor.sections import Section
from resumefit.editor.session import EditorSession


class ContactInfo(BaseModel):
    name: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=320)
    phone: str = Field(default="", max_length=50)

    def is_empty(self) -> bool:
        return not (self.name.strip() or self.email.strip() or self.phone.strip())

    @property
    def contact_line(self) -> str:
        return " • ".join(part.strip() for part in (self.email, self.phone) if part.strip())


class ExportDocument(BaseModel):
    filename: str = "updated-resume.pdf"
    contact: ContactInfo | None = None
    contact_line: str = ""
    sections: list[Section] = Field(default_factory=list)


def build_export_document(session: EditorSession, contact: ContactInfo | None = None) -> ExportDocument:
    """Layout input for the external PDF renderer: contact header plus non-empty sections."""
    header = contact if contact is not None and not contact.is_empty() else None
    return ExportDocument(
        contact=header,
        contact_line=header.contact_line if header else "",
        sections=[s.model_copy() for s in session.sections if s.has_content()],
    )
