"""Create the tables if needed and the single Director account interactively.

Usage: python -m talentdesk.scripts.create_director
"""

import getpass
import sys

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

import talentdesk.models  # noqa: F401
from talentdesk.core.config import get_settings
from talentdesk.core.database import Base
from talentdesk.core.roles import Role
from talentdesk.core.security import hash_password
from talentdesk.models.recruiter import Recruiter

settings = get_settings()
sync_url = settings.DATABASE_URL.replace("+asyncpg", "").replace("+aiosqlite", "")
engine = create_engine(sync_url)


def main():
    print("=== TalentDesk - Director account ===\n")

    Base.metadata.create_all(engine)

    name = input("Full name: ").strip()
    if not name:
        print("Name is required.")
        sys.exit(1)

    default_email = settings.DIRECTOR_EMAIL
    prompt = f"Email [{default_email}]: " if default_email else "Email: "
    email = (input(prompt).strip() or default_email).lower()
    if not email or "@" not in email:
        print("Invalid email.")
        sys.exit(1)

    password = getpass.getpass("Password (min 8 chars): ")
    if len(password) < 8:
        print("Password is too short.")
        sys.exit(1)

    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        print("Passwords do not match.")
        sys.exit(1)

    with Session(engine) as session:
        director = session.execute(
            select(Recruiter).where(Recruiter.role == Role.DIRECTOR.value)
        ).scalar_one_or_none()
        if director:
            print(f"Error: {director.email} is already the Director.")
            sys.exit(1)

        existing = session.execute(
            select(Recruiter).where(func.lower(Recruiter.email) == email)
        ).scalar_one_or_none()
        if existing:
            existing.role = Role.DIRECTOR.value
            existing.password_hash = hash_password(password)
        else:
            session.add(
                Recruiter(
                    name=name,
                    email=email,
                    role=Role.DIRECTOR.value,
                    password_hash=hash_password(password),
                )
            )
        session.commit()

        print("\nDirector account ready.")
        print(f"  Email: {email}")
        print(f"  Sign in at {settings.FRONTEND_URL}")


if __name__ == "__main__":
    main()
