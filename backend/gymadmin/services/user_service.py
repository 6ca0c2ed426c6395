"""会員参照"""
from typing import Optional
from sqlalchemy.orm import Session

from gymadmin.models.user import User
from gymadmin.schemas.common import iso, page_info
from gymadmin.services.errors import UserNotFound


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFound()
    return user


def get_active_user(db: Session, user_id: int) -> User:
    """加入手続き用: 無効化された会員は存在しないものとして扱う"""
    user = get_user(db, user_id)
    if not user.is_active:
        raise UserNotFound("会員が見つからないか、無効化されています")
    return user


def list_users(
    db: Session,
    category: Optional[str] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """会員一覧"""
    q = db.query(User)
    if category:
        q = q.filter(User.category == category)
    if search:
        q = q.filter(
            (User.email.contains(search))
            | (User.first_name.contains(search))
            | (User.last_name.contains(search))
            | (User.university_id.contains(search))
        )
    if is_active is not None:
        q = q.filter(User.is_active == is_active)

    total = q.count()
    users = q.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {"users": [user_to_dict(u) for u in users], **page_info(total, page, limit)}


def set_user_active(db: Session, user_id: int, is_active: bool) -> User:
    user = get_user(db, user_id)
    user.is_active = is_active
    db.flush()
    return user


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "full_name": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "university_id": user.university_id,
        "hall_of_residence": user.hall_of_residence,
        "category": user.category,
        "is_active": user.is_active,
        "created_at": iso(user.created_at),
    }
