# models/user.py
from __future__ import annotations
from datetime import datetime, timezone
from db import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Account(db.Model):
    __tablename__ = "accounts"

    id               = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name             = db.Column(db.String(120), nullable=False)
    email            = db.Column(db.String(254), nullable=False, unique=True, index=True)
    date_of_birth    = db.Column(db.Date, nullable=True)

    # Pending challenge: both set or both NULL
    otp_hash         = db.Column(db.String(64), nullable=True)      # sha256 hex string
    otp_expires_at   = db.Column(db.DateTime, nullable=True)

    verified_at      = db.Column(db.DateTime, nullable=True)
    created_at       = db.Column(db.DateTime, default=_utcnow, nullable=False)

    # ── Relationships ────────────────────────────────────────────────────────
    notes = db.relationship(
        "Note",
        back_populates="owner",
        cascade="all, delete-orphan",
        order_by="Note.created_at.desc()",
    )

    # ── Helpers ─────────────────────────────────────────────────────────────
    @property
    def has_pending_challenge(self) -> bool:
        return bool(self.otp_hash) and self.otp_expires_at is not None

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None

    def clear_challenge(self) -> None:
        self.otp_hash = None
        self.otp_expires_at = None

    def to_dict(self) -> dict:
        """Identity fields only; the pending challenge never leaves the server."""
        created = self.created_at
        if created is not None and created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "createdAt": created.isoformat() if created else None,
        }
