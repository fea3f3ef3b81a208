"""User model - POS operators with a role."""
import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from werkzeug.security import generate_password_hash, check_password_hash


class UserRole(enum.Enum):
    """User roles, highest first."""
    ADMIN = 'admin'
    MANAGER = 'manager'
    CASHIER = 'cashier'

    @classmethod
    def values(cls):
        return [role.value for role in cls]


@dataclass
class User:
    """POS user. ``username`` is unique across the directory."""

    id: int
    name: str
    username: str
    role: str = UserRole.CASHIER.value
    email: str = ''
    password_hash: Optional[str] = None
    is_active: bool = True
    last_login: Optional[str] = None
    created_at: Optional[str] = None

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash or password is None:
            return False
        return check_password_hash(self.password_hash, password)

    def to_public_dict(self) -> Dict[str, Any]:
        """User fields safe to return from the API."""
        return {
            'id': self.id,
            'name': self.name,
            'username': self.username,
            'role': self.role,
            'email': self.email,
            'isActive': self.is_active,
            'lastLogin': self.last_login,
            'createdAt': self.created_at,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_public_dict()
        data['passwordHash'] = self.password_hash
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        user = cls(
            id=int(data['id']),
            name=str(data.get('name') or ''),
            username=str(data['username']),
            role=str(data.get('role') or UserRole.CASHIER.value),
            email=str(data.get('email') or ''),
            password_hash=data.get('passwordHash'),
            is_active=bool(data.get('isActive', True)),
            last_login=data.get('lastLogin'),
            created_at=data.get('createdAt'),
        )
        # Older stores kept the password in clear text
        if not user.password_hash and data.get('password'):
            user.set_password(data['password'])
        return user
