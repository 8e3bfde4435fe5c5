from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from talentdesk.core.dependencies import get_backend, get_current_identity
from talentdesk.core.roles import Identity
from talentdesk.schemas.candidate import DocumentPreviewResponse
from talentdesk.schemas.document import CompanyDocumentResponse, DocumentCategoryUpdate
from talentdesk.services import company_documents as document_service
from talentdesk.services.backend import Backend
from talentdesk.services.documents import preview_word_document

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("/preview", response_model=DocumentPreviewResponse)
async def preview(
    url: str,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    return await preview_word_document(backend, url)


@router.get("/categories", response_model=dict[str, list[str]])
async def categories(_: Identity = Depends(get_current_identity)):
    return {name: list(subs) for name, subs in document_service.CATEGORIES.items()}


@router.get("", response_model=list[CompanyDocumentResponse])
async def list_documents(
    category: str | None = None,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    return await document_service.list_documents(backend, category)


@router.post("", response_model=CompanyDocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    category: str = Form(...),
    sub_category: str = Form(...),
    identity: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    content = await file.read()
    return await document_service.upload_document(
        backend,
        identity,
        filename=file.filename or "",
        content=content,
        content_type=file.content_type,
        category=category,
        sub_category=sub_category,
    )


@router.patch("/{document_id}", response_model=CompanyDocumentResponse)
async def update_category(
    document_id: UUID,
    data: DocumentCategoryUpdate,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    return await document_service.update_document_category(backend, document_id, data.category, data.sub_category)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    await document_service.delete_document(backend, document_id)
