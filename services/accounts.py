# services/accounts.py
from __future__ import annotations

from datetime import date

from db import db
from models.user import Account

__all__ = ["AccountStore", "normalize_email"]


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class AccountStore:
    """Durable email → account mapping backed by the SQLAlchemy session."""

    def get(self, account_id) -> Account | None:
        try:
            pk = int(account_id)
        except (TypeError, ValueError):
            return None
        return db.session.get(Account, pk)

    def get_by_email(self, email: str) -> Account | None:
        email = normalize_email(email)
        if not email:
            return None
        return Account.query.filter_by(email=email).first()

    def create(self, *, name: str, email: str, date_of_birth: date | None = None) -> Account:
        account = Account(
            name=name.strip(),
            email=normalize_email(email),
            date_of_birth=date_of_birth,
        )
        db.session.add(account)
        self.save(account)
        return account

    def save(self, account: Account) -> Account:
        db.session.add(account)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return account
