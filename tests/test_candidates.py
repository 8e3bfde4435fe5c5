import uuid
from datetime import datetime, timezone

import pytest

from talentdesk.core.errors import DuplicateCandidate, MissingInformation, PermissionDenied, ValidationFailed
from talentdesk.core.roles import Identity, Role
from talentdesk.services import comments as comment_service
from talentdesk.services.candidates import (
    create_candidate,
    delete_candidate,
    promote_shell,
    resume_viewer,
    storage_filename,
    update_candidate,
    upload_resume,
)
from talentdesk.services.comments import author_name_for


@pytest.mark.asyncio
async def test_candidate_needs_email_or_linkedin(backend, recruiter, open_store):
    _, identity = recruiter
    store = await open_store(identity)

    with pytest.raises(MissingInformation) as exc:
        await create_candidate(store, {"name": "No Contact", "email": "  ", "linkedin_url": ""})

    assert exc.value.title == "Missing Information"
    assert await backend.select("candidates") == []


@pytest.mark.asyncio
async def test_missing_information_alert(recruiter, open_store):
    _, identity = recruiter
    store = await open_store(identity)

    with pytest.raises(MissingInformation):
        await create_candidate(store, {"name": "No Contact"})

    [alert] = store.overlay.drain_alerts()
    assert (alert.type, alert.title) == ("warning", "Missing Information")
    assert "email address or a LinkedIn URL" in alert.message


@pytest.mark.asyncio
async def test_candidate_needs_a_name(backend, recruiter, open_store):
    _, identity = recruiter
    store = await open_store(identity)

    with pytest.raises(MissingInformation):
        await create_candidate(store, {"name": " ", "email": "someone@example.com"})


@pytest.mark.asyncio
async def test_create_candidate(recruiter, open_store):
    _, identity = recruiter
    store = await open_store(identity)

    candidate = await create_candidate(
        store,
        {
            "name": " Jane Doe ",
            "email": "Jane.Doe@Example.com",
            "linkedin_url": "https://www.linkedin.com/in/jane-doe/",
            "skills": ["Python", " SQL "],
        },
    )

    assert candidate["name"] == "Jane Doe"
    assert candidate["email"] == "jane.doe@example.com"
    assert candidate["linkedin_key"] == "linkedin.com/in/jane-doe"
    assert candidate["skills"] == "Python, SQL"
    assert candidate["created_by_recruiter"] == "Rita Recruiter"
    assert store.get("candidates", candidate["id"]) is not None


@pytest.mark.asyncio
async def test_duplicate_email_is_case_insensitive(backend, recruiter, open_store):
    _, identity = recruiter
    store = await open_store(identity)
    await create_candidate(store, {"name": "Jane Doe", "email": "jane@example.com"})

    with pytest.raises(DuplicateCandidate):
        await create_candidate(store, {"name": "Jane D.", "email": "JANE@example.com"})

    assert len(await backend.select("candidates")) == 1


@pytest.mark.asyncio
async def test_duplicate_linkedin_is_normalized(recruiter, open_store):
    _, identity = recruiter
    store = await open_store(identity)
    await create_candidate(store, {"name": "Jane Doe", "linkedin_url": "https://www.linkedin.com/in/jane/"})

    with pytest.raises(DuplicateCandidate):
        await create_candidate(store, {"name": "Jane Doe", "linkedin_url": "linkedin.com/in/jane?utm=x"})


@pytest.mark.asyncio
async def test_update_checks_duplicates_against_others(recruiter, open_store):
    _, identity = recruiter
    store = await open_store(identity)
    jane = await create_candidate(store, {"name": "Jane Doe", "email": "jane@example.com"})
    await create_candidate(store, {"name": "John Roe", "email": "john@example.com"})

    updated = await update_candidate(store, jane["id"], {"email": "JANE@example.com", "location": "Berlin"})
    assert updated["location"] == "Berlin"

    with pytest.raises(DuplicateCandidate):
        await update_candidate(store, jane["id"], {"email": "john@example.com"})


@pytest.mark.asyncio
async def test_delete_cascades(backend, recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id)
    candidate_id = data["candidate"]["id"]
    store = await open_store(identity)
    await comment_service.add_comment(backend, identity, candidate_id, "Great call")
    await backend.insert(
        "interviews",
        {
            "candidate_id": candidate_id,
            "position_id": data["position"]["id"],
            "interview_date": datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc),
        },
    )
    assert candidate_id in store.unread_comment_candidate_ids

    await delete_candidate(store, candidate_id)

    assert await backend.select("candidates") == []
    assert await backend.select("comments") == []
    assert await backend.select("pipeline") == []
    assert await backend.select("interviews") == []
    assert store.collections["candidates"] == []
    assert candidate_id not in store.unread_comment_candidate_ids


@pytest.mark.asyncio
async def test_promote_shell_profile(backend, recruiter, open_store):
    _, identity = recruiter
    [shell] = await backend.insert(
        "candidates",
        {
            "name": "Archived Candidate",
            "linkedin_url": "https://linkedin.com/in/sam",
            "linkedin_key": "linkedin.com/in/sam",
            "profile_type": "shell",
            "status": "Archived",
        },
    )
    store = await open_store(identity)

    promoted = await promote_shell(store, shell["id"], {"name": "Sam Poe", "email": "sam@example.com"})

    assert promoted["profile_type"] == "full"
    assert promoted["status"] is None
    assert promoted["name"] == "Sam Poe"

    with pytest.raises(ValidationFailed):
        await promote_shell(store, shell["id"], {"name": "Sam Poe"})


@pytest.mark.asyncio
async def test_upload_resume(backend, storage):
    url = await upload_resume(backend, "My Resume 2024.pdf", b"%PDF-1.4", "application/pdf")

    assert url.startswith("http://storage.test/resumes/")
    assert url.endswith("_My_Resume_2024.pdf")
    assert len(storage.objects) == 1


@pytest.mark.asyncio
async def test_upload_resume_requires_a_file(backend):
    with pytest.raises(MissingInformation):
        await upload_resume(backend, "", b"", None)


def test_storage_filename_and_viewer():
    name = storage_filename("  cv  final.docx ")
    stamp, rest = name.split("_", 1)
    assert stamp.isdigit()
    assert rest == "cv_final.docx"
    assert resume_viewer("http://x/resumes/1_cv.DOCX") == "docx"
    assert resume_viewer("http://x/resumes/1_cv.pdf") == "pdf"
    assert resume_viewer(None) is None


@pytest.mark.asyncio
async def test_comments(backend, recruiter, manager, seed):
    _, author = recruiter
    _, other = manager
    data = await seed(author.id)
    candidate_id = data["candidate"]["id"]

    with pytest.raises(MissingInformation):
        await comment_service.add_comment(backend, author, candidate_id, "   ")

    first = await comment_service.add_comment(backend, author, candidate_id, "  First  ")
    second = await comment_service.add_comment(backend, author, candidate_id, "Second")
    assert first["comment_text"] == "First"
    assert first["author_name"] == "Rita Recruiter"

    listed = await comment_service.list_comments(backend, candidate_id)
    assert [c["id"] for c in listed] == [second["id"], first["id"]]

    with pytest.raises(PermissionDenied):
        await comment_service.edit_comment(backend, other, first["id"], "Hijacked")
    with pytest.raises(PermissionDenied):
        await comment_service.delete_comment(backend, other, first["id"])

    edited = await comment_service.edit_comment(backend, author, first["id"], "Edited")
    assert edited["comment_text"] == "Edited"
    await comment_service.delete_comment(backend, author, first["id"])
    assert len(await comment_service.list_comments(backend, candidate_id)) == 1


def test_author_name_falls_back_to_email_local_part():
    anonymous = Identity(id=uuid.uuid4(), email="jane.doe@example.com", name="", role=Role.RECRUITER)
    assert author_name_for(anonymous) == "Jane Doe"
    assert author_name_for(anonymous, {"name": "Janet"}) == "Janet"
