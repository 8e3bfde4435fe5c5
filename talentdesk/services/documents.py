"""Inline preview of Word documents as HTML."""

import html
import zipfile
from io import BytesIO

import httpx
import structlog
from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.table import Table
from docx.text.paragraph import Paragraph

from talentdesk.core.config import get_settings
from talentdesk.core.errors import BackendReadError, DocumentConversionError
from talentdesk.services.backend import Backend

logger = structlog.get_logger()
settings = get_settings()

LIST_STYLES = {"List Bullet": "ul", "List Number": "ol", "List Paragraph": "ul"}


def _run_html(run) -> str:
    text = html.escape(run.text)
    if not text:
        return ""
    if run.bold:
        text = f"<strong>{text}</strong>"
    if run.italic:
        text = f"<em>{text}</em>"
    if run.underline:
        text = f"<u>{text}</u>"
    return text


def _paragraph_html(paragraph: Paragraph) -> tuple[str, str]:
    """Returns (list tag or "", html fragment)."""
    style = paragraph.style.name if paragraph.style is not None else ""
    body = "".join(_run_html(run) for run in paragraph.runs)
    for prefix, tag in LIST_STYLES.items():
        if style.startswith(prefix):
            return tag, f"<li>{body}</li>"
    if style == "Title":
        return "", f"<h1>{body}</h1>"
    if style.startswith("Heading "):
        level = style.rsplit(" ", 1)[-1]
        if level.isdigit() and 1 <= int(level) <= 6:
            return "", f"<h{level}>{body}</h{level}>"
    if not body:
        return "", ""
    return "", f"<p>{body}</p>"


def _table_html(table: Table) -> str:
    rows = []
    for row in table.rows:
        cells = []
        for cell in row.cells:
            content = "".join(_paragraph_html(p)[1] for p in cell.paragraphs)
            cells.append(f"<td>{content}</td>")
        rows.append(f"<tr>{''.join(cells)}</tr>")
    return f"<table>{''.join(rows)}</table>"


def docx_to_html(content: bytes, download_url: str | None = None) -> str:
    try:
        document = Document(BytesIO(content))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        logger.warning("docx_conversion_failed", error=str(e))
        raise DocumentConversionError(
            "This document could not be previewed.", download_url=download_url, retryable=False
        ) from e

    parts: list[str] = []
    open_list: str | None = None
    for block in document.iter_inner_content():
        if isinstance(block, Table):
            fragment, list_tag = _table_html(block), ""
        else:
            list_tag, fragment = _paragraph_html(block)
        if open_list and list_tag != open_list:
            parts.append(f"</{open_list}>")
            open_list = None
        if list_tag and open_list is None:
            parts.append(f"<{list_tag}>")
            open_list = list_tag
        if fragment:
            parts.append(fragment)
    if open_list:
        parts.append(f"</{open_list}>")
    return "".join(parts)


async def fetch_document(backend: Backend, url: str) -> bytes:
    """Read from the resumes bucket when the URL points there, otherwise over HTTP."""
    key = backend.key_from_public_url(settings.S3_BUCKET_RESUMES, url)
    try:
        if key:
            return await backend.download(settings.S3_BUCKET_RESUMES, key)
        async with httpx.AsyncClient(timeout=15, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content
    except (BackendReadError, httpx.HTTPError) as e:
        logger.warning("document_fetch_failed", url=url, error=str(e))
        raise DocumentConversionError(
            "The document could not be loaded. Try again or download it instead.",
            download_url=url,
            retryable=True,
        ) from e


async def preview_word_document(backend: Backend, url: str) -> dict:
    content = await fetch_document(backend, url)
    rendered = docx_to_html(content, download_url=url)
    logger.info("docx_preview_rendered", url=url, size=len(content))
    return {"html": rendered, "download_url": url}
