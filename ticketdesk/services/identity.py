"""
Session identity stub.

Demo-mode login: picks a throwaway username for the chosen role. This is
NOT authentication. The engine only needs usernames to be stable strings
for the length of a session.
"""

import secrets
import string
from typing import Union

from ..models.ticket import Role, User

_ALPHABET = string.ascii_lowercase + string.digits


def login(role: Union[str, Role]) -> User:
    role = Role(role)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(5))
    return User(username=f"{role.value}_{suffix}", role=role)
