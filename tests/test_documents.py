from io import BytesIO
from types import SimpleNamespace

import pytest
from docx import Document

from talentdesk.core.errors import (
    DocumentConversionError,
    MissingInformation,
    NotFound,
    ResumeParseError,
    ValidationFailed,
)
from talentdesk.services.company_documents import (
    delete_document,
    is_valid_filename,
    list_documents,
    update_document_category,
    upload_document,
    validate_category,
)
from talentdesk.services.documents import docx_to_html, preview_word_document
from talentdesk.services.resume_parser import extract_text, parse_resume_text


def _docx_bytes() -> bytes:
    document = Document()
    document.add_heading("Jane Doe", 0)
    document.add_heading("Skills", 1)
    document.add_paragraph("Python", style="List Bullet")
    document.add_paragraph("SQL", style="List Bullet")
    paragraph = document.add_paragraph("Plain & ")
    paragraph.add_run("bold").bold = True
    table = document.add_table(rows=1, cols=2)
    table.cell(0, 0).text = "Company"
    table.cell(0, 1).text = "Years"
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def test_docx_to_html():
    html = docx_to_html(_docx_bytes())

    assert "<h1>Jane Doe</h1>" in html
    assert "<h1>Skills</h1>" in html
    assert "<ul><li>Python</li><li>SQL</li></ul>" in html
    assert "<p>Plain &amp; <strong>bold</strong></p>" in html
    assert "<table><tr><td><p>Company</p></td><td><p>Years</p></td></tr></table>" in html


def test_docx_to_html_rejects_non_documents():
    with pytest.raises(DocumentConversionError) as exc:
        docx_to_html(b"not a word document", download_url="http://files.test/cv.docx")
    assert exc.value.retryable is False
    assert exc.value.to_payload()["error"]["details"]["download_url"] == "http://files.test/cv.docx"


@pytest.mark.asyncio
async def test_preview_from_storage(backend, storage):
    storage.objects[("resumes", "cv.docx")] = _docx_bytes()
    url = storage.public_url("resumes", "cv.docx")

    preview = await preview_word_document(backend, url)

    assert preview["download_url"] == url
    assert "<h1>Jane Doe</h1>" in preview["html"]


@pytest.mark.asyncio
async def test_preview_fetch_failure_is_retryable(backend, storage):
    url = storage.public_url("resumes", "missing.docx")
    with pytest.raises(DocumentConversionError) as exc:
        await preview_word_document(backend, url)
    assert exc.value.retryable is True
    assert exc.value.download_url == url


def test_filename_and_category_validation():
    assert is_valid_filename("Handbook v2_final-2024.pdf")
    assert not is_valid_filename("hand/book.pdf")
    assert not is_valid_filename("")

    validate_category("Financial & Billing Documents", "Invoice Templates")
    with pytest.raises(MissingInformation):
        validate_category("Financial & Billing Documents", None)
    with pytest.raises(ValidationFailed):
        validate_category("Party Planning", "Invoice Templates")
    with pytest.raises(ValidationFailed):
        validate_category("Financial & Billing Documents", "Sourcing Strategies")


@pytest.mark.asyncio
async def test_company_document_lifecycle(backend, storage, director):
    _, identity = director

    with pytest.raises(ValidationFailed):
        await upload_document(
            backend, identity, filename="bad$name.pdf", content=b"x", content_type="application/pdf",
            category="Financial & Billing Documents", sub_category="Invoice Templates",
        )
    assert storage.objects == {}

    document = await upload_document(
        backend, identity, filename="Invoice Template.pdf", content=b"%PDF", content_type="application/pdf",
        category="Financial & Billing Documents", sub_category="Invoice Templates",
    )
    [(bucket, key)] = storage.objects
    assert bucket == "company-documents"
    assert key.startswith(f"{identity.id}/")
    assert key.endswith("_Invoice_Template.pdf")
    assert document["file_url"] == storage.public_url(bucket, key)

    moved = await update_document_category(
        backend, document["id"], "Training & Development Materials", "Software / ATS Guides"
    )
    assert moved["sub_category"] == "Software / ATS Guides"
    assert [d["id"] for d in await list_documents(backend, "Training & Development Materials")] == [document["id"]]
    assert await list_documents(backend, "Financial & Billing Documents") == []

    await delete_document(backend, document["id"])
    assert storage.objects == {}
    with pytest.raises(NotFound):
        await delete_document(backend, document["id"])


def test_extract_text():
    assert extract_text(b"Jane Doe\nPython", "resume.TXT") == "Jane Doe\nPython"
    assert "Jane Doe" in extract_text(_docx_bytes(), "cv.docx")
    with pytest.raises(ValidationFailed):
        extract_text(b"...", "resume.rtf")


class FakeMessages:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(content=self.content, stop_reason="tool_use")


def _client(content):
    return SimpleNamespace(messages=FakeMessages(content))


def test_parse_resume_text_uses_tool_output():
    payload = {
        "data": {
            "name": "Jane Doe",
            "email": "jane@example.com",
            "phone": "+1 555 0100",
            "skills": ["Python", "SQL"],
            "experience": [{"title": "Engineer", "company": "Acme", "start_date": "2019-01"}],
        }
    }
    client = _client([SimpleNamespace(type="text"), SimpleNamespace(type="tool_use", input=payload)])

    data = parse_resume_text("Jane Doe, Python engineer", client=client)

    assert data.name == "Jane Doe"
    assert data.skills == ["Python", "SQL"]
    assert data.experience[0].company == "Acme"
    [call] = client.messages.calls
    assert call["tool_choice"] == {"type": "tool", "name": "resume_parser"}


def test_parse_resume_text_failures():
    with pytest.raises(ValidationFailed):
        parse_resume_text("   ", client=_client([]))
    with pytest.raises(ResumeParseError):
        parse_resume_text("resume", client=_client([SimpleNamespace(type="text")]))
    with pytest.raises(ResumeParseError):
        parse_resume_text(
            "resume", client=_client([SimpleNamespace(type="tool_use", input={"data": {"name": "Jane"}})])
        )


def test_apply_parsed_resume_fills_only_empty_fields():
    from talentdesk.services.resume_parser import ResumeData
    from talentdesk.workers.resume_processing import apply_parsed_resume

    candidate = SimpleNamespace(
        email="jane@example.com", phone="+1 555 0100", linkedin_url=None, linkedin_key=None, skills="", notes=""
    )
    data = ResumeData(
        name="Jane Doe",
        email="other@example.com",
        phone="+1 555 0199",
        linkedin_url="https://www.linkedin.com/in/jane-doe/",
        summary="Backend engineer.",
        skills=["Python", " SQL "],
    )

    filled = apply_parsed_resume(candidate, data)

    assert filled == ["linkedin_url", "skills", "notes"]
    assert candidate.email == "jane@example.com"
    assert candidate.phone == "+1 555 0100"
    assert candidate.linkedin_key == "linkedin.com/in/jane-doe"
    assert candidate.skills == "Python, SQL"
