"""
Shared fixtures for service-level tests: an in-memory SQLite database with
the real ORM models, and helpers to seed user and review documents.
"""
import uuid
from unittest.mock import Mock

from sqlalchemy.pool import StaticPool

from episodic.db.documents import DocumentStore
from episodic.db.models import Base, Review, User
from episodic.db.session import build_engine, make_session_factory
from episodic.services.activity_service import ActivityRecorder


class SqliteStoreMixin:
    """setUp/tearDown that give each test a fresh database and store."""

    def setUp(self) -> None:
        self.engine = build_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
        Base.metadata.create_all(self.engine)
        self.session_factory = make_session_factory(self.engine)
        self.session = self.session_factory()
        self.store = DocumentStore(self.session)
        self.recorder = Mock(spec=ActivityRecorder)

    def tearDown(self) -> None:
        self.session.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def add_user(self, username: str, **fields) -> User:
        user = User(
            id=fields.pop("id", uuid.uuid4()),
            username=username,
            email=f"{username}@example.com",
            password_hash="x",
            friends=[str(v) for v in fields.pop("friends", [])],
            friend_requests_sent=[str(v) for v in fields.pop("sent", [])],
            friend_requests_recieved=[str(v) for v in fields.pop("received", [])],
            watched_history=fields.pop("watched_history", []),
            **fields,
        )
        self.session.add(user)
        self.session.commit()
        return user

    def add_review(self, author: User, show_id: str = "1399", **fields) -> Review:
        review = Review(
            show_id=show_id,
            user_id=author.id,
            username=author.username,
            rating=fields.pop("rating", 4.0),
            content=fields.pop("content", "Great show"),
            likes=[str(v) for v in fields.pop("likes", [])],
            dislikes=[str(v) for v in fields.pop("dislikes", [])],
            **fields,
        )
        self.session.add(review)
        self.session.commit()
        return review

    def reload(self, model, ident):
        return self.store.find_one(model, ident)
