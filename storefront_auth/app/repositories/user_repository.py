from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from storefront_auth.domain.entities import User


class DuplicateEmailError(Exception):
    """Raised by create when another account already holds the email"""


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive)"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user

        Raises:
            DuplicateEmailError: the email is already registered
        """
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user"""
        pass
