# Overview: Service-layer operations for back-office user accounts.

"""
User accounts with bcrypt password hashing.

WHY: The register UI needs named logins (admin / manager / employee) for
attributing sales (seller_user). Issuing and storing sessions is handled
outside this service; authenticate() only checks credentials.
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import User
from ..validation import ConflictError, NotFoundError, ValidationError
from .catalog_service import apply_patch
from .concurrency import resolve_session, unit_of_work

USER_MUTABLE_FIELDS = {"username", "email", "role"}

MIN_PASSWORD_LENGTH = 6


def validate_password(password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt. Cost factor comes from BCRYPT_ROUNDS
    (12 by default; tests lower it).
    """
    validate_password(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if password matches hash, False otherwise."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in storage
        return False


def list_users(session: Session | None = None) -> list[dict]:
    session = resolve_session(session)
    users = session.query(User).order_by(User.username.asc()).all()
    return [u.to_dict() for u in users]


def get_user(user_id: int, session: Session | None = None) -> User:
    user = resolve_session(session).get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _ensure_identity_free(session: Session, patch: dict, exclude_id: int | None = None) -> None:
    for field in ("username", "email"):
        value = patch.get(field)
        if value is None:
            continue
        query = session.query(User.id).filter(getattr(User, field) == value)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("Username or email already exists")


def create_user(*, patch: dict, password: str, session: Session | None = None) -> User:
    session = resolve_session(session)
    password_hash = hash_password(password)
    try:
        with unit_of_work(session):
            _ensure_identity_free(session, patch)
            user = User(password_hash=password_hash)
            apply_patch(user, patch, USER_MUTABLE_FIELDS)
            session.add(user)
    except IntegrityError as exc:
        raise ConflictError("Username or email already exists") from exc
    return user


def update_user(
    *,
    user_id: int,
    patch: dict,
    password: str | None = None,
    session: Session | None = None,
) -> User:
    session = resolve_session(session)
    if not patch and password is None:
        raise ValidationError("No fields to update")
    password_hash = hash_password(password) if password is not None else None
    try:
        with unit_of_work(session):
            user = get_user(user_id, session)
            _ensure_identity_free(session, patch, exclude_id=user.id)
            apply_patch(user, patch, USER_MUTABLE_FIELDS)
            if password_hash is not None:
                user.password_hash = password_hash
    except IntegrityError as exc:
        raise ConflictError("Username or email already exists") from exc
    return user


def delete_user(*, user_id: int, session: Session | None = None) -> None:
    session = resolve_session(session)
    with unit_of_work(session):
        session.delete(get_user(user_id, session))


def authenticate(username: str, password: str, session: Session | None = None) -> User | None:
    """Return the user when the credentials match, otherwise None."""
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        raise ValidationError("Username and password are required")
    user = resolve_session(session).query(User).filter(User.username == username).first()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user
