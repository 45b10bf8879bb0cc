# models/note.py
from __future__ import annotations
from datetime import datetime, timezone
from db import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Note(db.Model):
    __tablename__ = "notes"

    id         = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title      = db.Column(db.String(200), nullable=False)
    content    = db.Column(db.Text, nullable=False)
    user_id    = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False, index=True)

    owner = db.relationship("Account", back_populates="notes")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "content": self.content,
            "user": str(self.user_id),
            "createdAt": self.created_at.replace(tzinfo=timezone.utc).isoformat(),
        }
