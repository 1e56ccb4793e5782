"""
UserIdentity Model
"""

from dataclasses import dataclass
from typing import Optional

ANONYMOUS_NAME = "Anonymous"

@dataclass(frozen=True)
class UserIdentity:
    """Thông tin định danh do identity provider cung cấp"""
    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_label(self) -> str:
        """display_name -> email -> Anonymous"""
        return self.display_name or self.email or ANONYMOUS_NAME
