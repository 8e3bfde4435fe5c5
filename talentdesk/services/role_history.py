"""Contribution breakdown for closed positions."""

HIRE_COMMISSION = 15
STAGE_VALUES = {"Interview 1": 1, "Interview 2": 2, "Interview 3": 3, "Offer": 3, "Hired": 3}
STAGE_COMMISSIONS = {
    1: (1, "Candidate reached Interview 1"),
    2: (2, "Candidate reached Interview 2"),
    3: (3, "Candidate reached Interview 3+"),
}


def recruiter_breakdown(entries: list[dict]) -> dict:
    """Per-recruiter stats for one position's pipeline entries.

    The recruiter who owns the hired candidate earns the hire commission; every
    other recruiter earns a percentage keyed on the furthest stage any of their
    candidates reached. Nobody earns anything when the role closed without a hire.
    """
    hired = next((e for e in entries if e["stage"] == "Hired"), None)
    hiring_recruiter = hired["recruiter_id"] if hired else None
    breakdown: dict = {}

    for entry in entries:
        recruiter_id = entry.get("recruiter_id")
        if not recruiter_id:
            continue
        stats = breakdown.setdefault(
            recruiter_id,
            {
                "recruiter_id": recruiter_id,
                "recruiter_name": entry.get("recruiter_name") or "Unknown Recruiter",
                "total_candidates": 0,
                "candidates": [],
                "highest_stage": None,
                "commission": 0,
                "commission_reason": "Not Eligible",
                "interview1_count": 0,
                "interview2_count": 0,
                "interview3_count": 0,
            },
        )
        stats["total_candidates"] += 1
        stats["candidates"].append({"name": entry.get("candidate_name") or "Unknown", "stage": entry["stage"]})

        value = STAGE_VALUES.get(entry["stage"], 0)
        if value > STAGE_VALUES.get(stats["highest_stage"], 0):
            stats["highest_stage"] = entry["stage"]
        if value >= 1:
            stats["interview1_count"] += 1
        if value >= 2:
            stats["interview2_count"] += 1
        if value >= 3:
            stats["interview3_count"] += 1

    if hired is None:
        return breakdown

    for recruiter_id, stats in breakdown.items():
        if recruiter_id == hiring_recruiter:
            stats["commission"] = HIRE_COMMISSION
            stats["commission_reason"] = f"Hired Candidate ({hired.get('candidate_name')})"
        elif stats["highest_stage"]:
            stats["commission"], stats["commission_reason"] = STAGE_COMMISSIONS[
                STAGE_VALUES[stats["highest_stage"]]
            ]
    return breakdown


def role_history(positions: list[dict], pipeline: list[dict]) -> list[dict]:
    history = []
    for position in positions:
        if position["status"] != "Closed":
            continue
        entries = [p for p in pipeline if p["position_id"] == position["id"]]
        hired = next((e for e in entries if e["stage"] == "Hired"), None)
        history.append(
            {
                "position_id": position["id"],
                "title": position["title"],
                "client_name": position.get("client_name"),
                "total_candidates": len(entries),
                "hired_candidate": hired.get("candidate_name") if hired else None,
                "recruiters": list(recruiter_breakdown(entries).values()),
            }
        )
    return history
