# routes/notes.py
from flask import Blueprint, request, jsonify, g, current_app

from auth_guard import require_auth
from db import db
from errors import ApiError, ErrorCode
from models.note import Note

notes_bp = Blueprint("notes", __name__, url_prefix="/notes")


def _owner_id() -> int:
    try:
        return int(g.account_id)
    except (TypeError, ValueError):
        raise ApiError(ErrorCode.UNAUTHENTICATED)


@notes_bp.route("/create", methods=["POST"])
@require_auth
def create_note():
    data = request.get_json(silent=True) or {}
    title = data.get("title") if isinstance(data, dict) else None
    content = data.get("content") if isinstance(data, dict) else None
    if not isinstance(title, str) or not title.strip() or not isinstance(content, str) or not content.strip():
        raise ApiError(ErrorCode.VALIDATION, "title and content are required.")

    note = Note(title=title.strip(), content=content, user_id=_owner_id())
    db.session.add(note)
    db.session.commit()

    current_app.logger.info("[notes] created id=%s uid=%s", note.id, note.user_id)
    return jsonify(note.to_dict()), 201


@notes_bp.route("/all", methods=["GET"])
@require_auth
def list_notes():
    rows = (
        Note.query.filter_by(user_id=_owner_id())
        .order_by(Note.created_at.desc(), Note.id.desc())
        .all()
    )
    return jsonify([n.to_dict() for n in rows]), 200


@notes_bp.route("/delete/<int:note_id>", methods=["DELETE"])
@require_auth
def delete_note(note_id: int):
    # Owner-scoped: someone else's note looks exactly like a missing one
    deleted = Note.query.filter_by(id=note_id, user_id=_owner_id()).delete()
    if not deleted:
        db.session.rollback()
        raise ApiError(ErrorCode.NOTE_NOT_FOUND)
    db.session.commit()

    current_app.logger.info("[notes] deleted id=%s uid=%s", note_id, g.account_id)
    return jsonify(success=True, message="Note deleted successfully."), 200
