"""Admin use cases for account administration."""

from .change_admin_role_use_case import ChangeAdminRoleUseCase

__all__ = [
    "ChangeAdminRoleUseCase",
]
