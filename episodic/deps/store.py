"""
Per-request collaborators for the social-state services.

Routes never build a DocumentStore or ActivityRecorder themselves:

    @router.post("/things")
    def act(store: DocumentStore = Depends(get_store),
            recorder: ActivityRecorder = Depends(get_activity_recorder)):
        ...
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from episodic.db.documents import DocumentStore
from episodic.db.session import SessionLocal, get_db
from episodic.services.activity_service import ActivityRecorder


def get_store(db: Session = Depends(get_db)) -> DocumentStore:
    return DocumentStore(db)


def get_activity_recorder() -> ActivityRecorder:
    # Separate session per record so activity writes stay out of the
    # request's transaction.
    return ActivityRecorder(SessionLocal)
