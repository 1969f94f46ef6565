from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from dailyvibes.errors import Conflict, Unauthenticated, ValidationError
from dailyvibes.extensions import db
from dailyvibes.models import User

MIN_PASSWORD_LENGTH = 6


def _admin_usernames() -> set:
    raw = current_app.config.get("ADMIN_USERNAMES") or ""
    return {u.strip() for u in raw.split(",") if u.strip()}


def _check_password_rules(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def register(username: str, email: str, password: str, confirm_password: str) -> User:
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email or not password or not confirm_password:
        raise ValidationError("All fields are required")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    _check_password_rules(password)
    if "@" not in email:
        raise ValidationError("Invalid email address")

    if User.query.filter_by(username=username).first():
        raise Conflict("Username already taken")
    if User.query.filter_by(email=email).first():
        raise Conflict("Email already registered")

    u = User(username=username, email=email, role="admin" if username in _admin_usernames() else "user")
    u.set_password(password)
    db.session.add(u)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Username or email already registered")
    return u


def login(username: str, password: str) -> User:
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Username and password are required")
    u = User.query.filter_by(username=username).first()
    if not u or not u.check_password(password):
        raise Unauthenticated("Invalid credentials")
    return u


def set_profile_image(user: User, image) -> User:
    user.profile_image = image or None
    db.session.commit()
    return user


def change_email(user: User, new_email: str, password: str) -> User:
    new_email = (new_email or "").strip().lower()
    if not new_email or not password:
        raise ValidationError("Email and password are required")
    if "@" not in new_email:
        raise ValidationError("Invalid email address")
    if not user.check_password(password):
        raise Unauthenticated("Wrong password")
    taken = User.query.filter(User.email == new_email, User.id != user.id).first()
    if taken:
        raise Conflict("Email already in use")
    user.email = new_email
    db.session.commit()
    return user


def change_password(user: User, old_password: str, new_password: str) -> None:
    if not old_password or not new_password:
        raise ValidationError("Old and new password are required")
    _check_password_rules(new_password)
    if not user.check_password(old_password):
        raise Unauthenticated("Wrong old password")
    user.set_password(new_password)
    db.session.commit()


def set_memories_visibility(user: User, public) -> User:
    if not isinstance(public, bool):
        raise ValidationError("memoriesPublic must be true or false")
    user.memories_public = public
    db.session.commit()
    return user
