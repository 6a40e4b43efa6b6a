"""Employer note threads on applications."""

from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFound, ValidationError
from core.middleware.authorization import Permission
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.applications import Application, ApplicationNote
from database.models.users import User
from api.services.applications import load_application, load_authorized_application

logger = logging.getLogger(__name__)


async def add_note(
    db: AsyncSession,
    user: User,
    application_id: int,
    text: str,
    reply_to_note_id: Optional[int] = None,
) -> Application:
    """
    Add a note, or a reply to a top-level note, to an application.

    Each note is its own row, so concurrent authors never overwrite each
    other. Replies attach only to top-level notes of the same application.

    Args:
        db: Database session
        user: Author
        application_id: Application to annotate
        text: Note body
        reply_to_note_id: Top-level note being replied to

    Returns:
        The application with its updated note thread

    Raises:
        ValidationError: If text is empty
        NotFound: If the application or the parent note does not exist
    """
    if text is None or not text.strip():
        raise ValidationError("Note text is required")

    author_id = user.id
    await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_NOTE
    )

    if reply_to_note_id is not None:
        parent = await db.execute(
            select(ApplicationNote.id).where(
                ApplicationNote.id == reply_to_note_id,
                ApplicationNote.application_id == application_id,
                ApplicationNote.parent_note_id.is_(None),
            )
        )
        if parent.scalar_one_or_none() is None:
            raise NotFound(f"Note {reply_to_note_id} not found")

    note = ApplicationNote(
        application_id=application_id,
        parent_note_id=reply_to_note_id,
        text=text,
        added_by=author_id,
        author_name=user.name,
        author_avatar=user.avatar,
    )
    db.add(note)
    await db.commit()

    kind = "Reply" if reply_to_note_id is not None else "Note"
    logger.info(f"{kind} {note.id} added to application {application_id} by user {author_id}")
    log_audit_event(
        AuditAction.ADD_NOTE,
        ResourceType.NOTE,
        resource_id=note.id,
        user_id=author_id,
        details={"application_id": application_id, "reply_to": reply_to_note_id},
    )
    return await load_application(db, application_id)
