"""Friend requests and friendships.

States per pair: none -> pending(requester) -> friends; pending -> none on
removal. Accepting deletes the pending row and writes both friendship rows in
the same transaction, so friendship stays symmetric.
"""

from __future__ import annotations

from typing import List

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError

from dailyvibes.errors import Conflict, NotFound, ValidationError
from dailyvibes.extensions import db
from dailyvibes.models import FriendRequest, Friendship, User
from dailyvibes.services import notifications


def _require_user(username: str) -> User:
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required")
    other = User.query.filter_by(username=username).first()
    if other is None:
        raise NotFound("User not found")
    return other


def friend_ids(user_id: int) -> List[int]:
    return [
        int(fid)
        for (fid,) in db.session.query(Friendship.friend_id).filter_by(user_id=int(user_id))
    ]


def are_friends(a_id: int, b_id: int) -> bool:
    return (
        Friendship.query.filter_by(user_id=int(a_id), friend_id=int(b_id)).first() is not None
    )


def list_friends(user: User) -> List[User]:
    return (
        User.query.join(Friendship, Friendship.friend_id == User.id)
        .filter(Friendship.user_id == int(user.id))
        .order_by(User.username.asc())
        .all()
    )


def incoming_requests(user: User) -> List[FriendRequest]:
    return (
        FriendRequest.query.filter_by(receiver_id=int(user.id))
        .order_by(FriendRequest.created_at.asc(), FriendRequest.id.asc())
        .all()
    )


def send_request(user: User, target_username: str) -> FriendRequest:
    if (target_username or "").strip() == user.username:
        raise ValidationError("You cannot add yourself as a friend")
    target = _require_user(target_username)

    if are_friends(user.id, target.id):
        raise Conflict("Already friends")

    exists = FriendRequest.query.filter_by(sender_id=int(user.id), receiver_id=int(target.id)).first()
    if exists is not None:
        raise Conflict("Friend request already sent")

    req = FriendRequest(sender_id=int(user.id), receiver_id=int(target.id))
    db.session.add(req)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Friend request already sent")

    notifications.append(
        int(target.id),
        "👋 New friend request!",
        f"{user.username} wants to be your friend",
        "friend_request",
        origin=user.username,
    )
    return req


def accept_request(user: User, requester_username: str) -> User:
    requester = _require_user(requester_username)

    removed = (
        FriendRequest.query.filter_by(sender_id=int(requester.id), receiver_id=int(user.id))
        .delete(synchronize_session=False)
    )
    if not removed:
        db.session.rollback()
        raise Conflict("No pending friend request")

    # A crossed request in the other direction is settled by this acceptance too.
    FriendRequest.query.filter_by(sender_id=int(user.id), receiver_id=int(requester.id)).delete(
        synchronize_session=False
    )
    for a, b in ((user.id, requester.id), (requester.id, user.id)):
        if not are_friends(a, b):
            db.session.add(Friendship(user_id=int(a), friend_id=int(b)))
    db.session.commit()
    return requester


def remove_friend(user: User, other_username: str) -> None:
    other = _require_user(other_username)
    me, them = int(user.id), int(other.id)

    Friendship.query.filter(
        or_(
            and_(Friendship.user_id == me, Friendship.friend_id == them),
            and_(Friendship.user_id == them, Friendship.friend_id == me),
        )
    ).delete(synchronize_session=False)
    FriendRequest.query.filter(
        or_(
            and_(FriendRequest.sender_id == me, FriendRequest.receiver_id == them),
            and_(FriendRequest.sender_id == them, FriendRequest.receiver_id == me),
        )
    ).delete(synchronize_session=False)
    db.session.commit()
