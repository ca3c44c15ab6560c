from datetime import datetime

from flask_login import UserMixin

from quizhub import db


ROLE_ADMIN = "ADMIN"
ROLE_STUDENT = "STUDENT"
VALID_ROLES = (ROLE_ADMIN, ROLE_STUDENT)


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_STUDENT)  # 'ADMIN' or 'STUDENT'
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User {self.email} ({self.role})>"

    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def is_student(self) -> bool:
        return self.role == ROLE_STUDENT

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
