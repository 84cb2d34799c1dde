"""
Authorization Collaborator

The engine never decides who is an administrator. It asks an Authorizer,
and a False answer stops a mutation before the store is touched.
"""

from abc import ABC, abstractmethod


class Authorizer(ABC):
    """Answers whether the current caller is an administrator."""

    @abstractmethod
    def is_current_user_admin(self) -> bool:
        pass


class StaticAuthorizer(Authorizer):
    """
    Fixed answer. Used by the management CLI, which runs with operator
    rights, and by tests.
    """

    def __init__(self, is_admin: bool):
        self._is_admin = is_admin

    def is_current_user_admin(self) -> bool:
        return self._is_admin
