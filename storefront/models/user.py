# storefront/models/user.py
from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional

PROFILE_FIELDS = ("email", "full_name", "address", "phone")


@dataclass
class Profile:
    """The signed-in identity, mirrored from the server-side `profiles` row."""
    id: str
    email: str = ""
    full_name: str = ""
    address: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Profile":
        if d is None:
            raise ValueError("Cannot construct Profile from None")
        return cls(
            id=str(d["id"]),
            email=str(d.get("email") or ""),
            full_name=str(d.get("full_name") or ""),
            # empty cells come back as "" from some backends; both mean "not set"
            address=d.get("address") or None,
            phone=d.get("phone") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def merged(self, **fields) -> "Profile":
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")
        return replace(self, **fields)
