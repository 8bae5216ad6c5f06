# app/repositories/profile_repo.py
from sqlmodel import Session

from app.models.profile import Profile


class ProfileRepository:
    """
    Data access layer for Profile (table "users").

    Responsibilities:
      - Pure DB operations (point read, create, merge write)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_id(self, session: Session, profile_id: str) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        return session.get(Profile, profile_id)

    def create(self, session: Session, profile: Profile) -> Profile:
        """
        Insert a new Profile and return the persisted row.

        The refresh loads the server-assigned timestamps.
        """
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    def merge(self, session: Session, profile_id: str, fields: dict) -> Profile:
        """
        Partial write: apply `fields` onto the stored row.

        Creates the row when it does not exist yet (upsert), so a profile
        that previously only lived in memory gets persisted on first save.
        updated_at is stamped by the database.
        """
        profile = session.get(Profile, profile_id)
        if profile is None:
            profile = Profile(id=profile_id, **fields)
        else:
            for key, value in fields.items():
                setattr(profile, key, value)
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile
