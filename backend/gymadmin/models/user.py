from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SAEnum, func
from gymadmin.core.database import Base

USER_CATEGORIES = ("student", "staff", "public")


class User(Base):
    """会員 (大学関係者・一般利用者を category で区別する単一テーブル)"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(30), nullable=True)
    university_id = Column(String(8), unique=True, nullable=True, comment="大学ID (8桁, student/staffのみ)")
    hall_of_residence = Column(String(100), nullable=True, comment="寮 (学生のみ)")
    category = Column(
        SAEnum(*USER_CATEGORIES, name="user_category"),
        nullable=False,
        index=True,
        comment="会員区分: student / staff / public",
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
