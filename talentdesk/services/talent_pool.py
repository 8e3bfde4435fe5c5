"""Talent pool filtering.

Active predicates are applied left to right as an intersection over the whole
candidate collection. The sourcing filters (position, last outreach status,
rating, sourcing recruiter) only apply when ``linkedin_only`` is on, and they
can only narrow the result further.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from talentdesk.services.dates import as_utc, end_of_day, start_of_day, utcnow
from talentdesk.services.outreach import normalize_linkedin_url

Predicate = Callable[[dict], bool]

SEARCH_FIELDS = ("name", "email", "phone", "notes")


def split_skills(skills: str | list | None) -> list[str]:
    if not skills:
        return []
    if isinstance(skills, list):
        return [s.strip() for s in skills if s and s.strip()]
    return [s.strip() for s in skills.split(",") if s.strip()]


def unique_skills(candidates: list[dict]) -> list[str]:
    seen: dict[str, str] = {}
    for candidate in candidates:
        for skill in split_skills(candidate.get("skills")):
            seen.setdefault(skill.lower(), skill)
    return sorted(seen.values(), key=str.lower)


def unique_locations(candidates: list[dict]) -> list[str]:
    return sorted({c["location"].strip() for c in candidates if (c.get("location") or "").strip()})


def last_outreach_by_profile(outreach: list[dict]) -> dict[str, dict]:
    latest: dict[str, dict] = {}
    for record in outreach:
        key = normalize_linkedin_url(record.get("linkedin_url"))
        if not key:
            continue
        current = latest.get(key)
        if current is None or as_utc(record["created_at"]) > as_utc(current["created_at"]):
            latest[key] = record
    return latest


@dataclass
class TalentPoolFilters:
    search: str | None = None
    skills: list[str] = field(default_factory=list)
    location: str | None = None
    created_from: date | None = None
    created_to: date | None = None
    has_resume: bool | None = None
    has_linkedin: bool | None = None
    in_pipeline: bool | None = None
    added_this_week: bool = False
    linkedin_only: bool = False
    sourcing_position_id: Any = None
    sourcing_status: str | None = None
    sourcing_min_rating: int | None = None
    sourcing_recruiter_id: Any = None

    def predicates(self, pipeline_candidate_ids: set, now: datetime | None = None) -> list[Predicate]:
        now = now or utcnow()
        checks: list[Predicate] = []

        if self.search and self.search.strip():
            term = self.search.strip().lower()
            checks.append(lambda c: any(term in (c.get(f) or "").lower() for f in SEARCH_FIELDS))

        if self.skills:
            wanted = [s.lower() for s in self.skills]

            def has_skills(c):
                owned = [s.lower() for s in split_skills(c.get("skills"))]
                return all(any(w in s for s in owned) for w in wanted)

            checks.append(has_skills)

        if self.location:
            location = self.location.strip().lower()
            checks.append(lambda c: (c.get("location") or "").strip().lower() == location)

        if self.created_from:
            start = start_of_day(self.created_from)
            checks.append(lambda c: as_utc(c["created_at"]) >= start)

        if self.created_to:
            end = end_of_day(self.created_to)
            checks.append(lambda c: as_utc(c["created_at"]) <= end)

        if self.added_this_week:
            week_ago = now - timedelta(days=7)
            checks.append(lambda c: as_utc(c["created_at"]) >= week_ago)

        if self.has_resume is not None:
            checks.append(lambda c: bool((c.get("resume_url") or "").strip()) == self.has_resume)

        if self.has_linkedin is not None:
            checks.append(lambda c: bool((c.get("linkedin_url") or "").strip()) == self.has_linkedin)

        if self.in_pipeline is not None:
            checks.append(lambda c: (c["id"] in pipeline_candidate_ids) == self.in_pipeline)

        return checks

    def sourcing_predicates(self, last_outreach: dict[str, dict]) -> list[Predicate]:
        checks: list[Predicate] = [lambda c: bool((c.get("linkedin_url") or "").strip())]

        def outreach_of(c) -> dict | None:
            return last_outreach.get(normalize_linkedin_url(c.get("linkedin_url")))

        if self.sourcing_position_id:
            checks.append(lambda c: (outreach_of(c) or {}).get("position_id") == self.sourcing_position_id)
        if self.sourcing_status:
            checks.append(lambda c: (outreach_of(c) or {}).get("activity_status") == self.sourcing_status)
        if self.sourcing_min_rating:
            checks.append(lambda c: ((outreach_of(c) or {}).get("rating") or 0) >= self.sourcing_min_rating)
        if self.sourcing_recruiter_id:
            checks.append(lambda c: (outreach_of(c) or {}).get("recruiter_id") == self.sourcing_recruiter_id)
        return checks


def active_pipeline_candidate_ids(pipeline: list[dict]) -> set:
    return {p["candidate_id"] for p in pipeline if p["stage"] != "Archived"}


def filter_candidates(
    candidates: list[dict],
    filters: TalentPoolFilters,
    *,
    pipeline: list[dict],
    outreach: list[dict] | None = None,
    now: datetime | None = None,
) -> list[dict]:
    result = candidates
    for check in filters.predicates(active_pipeline_candidate_ids(pipeline), now):
        result = [c for c in result if check(c)]
    if filters.linkedin_only:
        for check in filters.sourcing_predicates(last_outreach_by_profile(outreach or [])):
            result = [c for c in result if check(c)]
    return result


def paginate(items: list, page: int, page_size: int) -> list:
    start = (page - 1) * page_size
    return items[start:start + page_size]
