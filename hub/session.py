"""
The hub's session value.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Session:
    """Opaque credentials plus the identity they belong to."""

    token: Optional[str] = None
    api_key: Optional[str] = None
    user_id: Optional[str] = None
    role: Optional[str] = None
    organization_id: Optional[str] = None

    @property
    def valid(self) -> bool:
        return bool(self.token or self.api_key)

    def auth_headers(self) -> Dict[str, str]:
        """API key wins over the bearer token."""
        if self.api_key:
            return {"x-api-key": self.api_key}
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "apiKey": self.api_key,
            "userId": self.user_id,
            "role": self.role,
            "organizationId": self.organization_id,
        }

    def public(self) -> Dict[str, Any]:
        """Session description without the secrets."""
        out = asdict(self)
        out.pop("token")
        out.pop("api_key")
        out["authenticated"] = self.valid
        return out

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Session"]:
        if not data:
            return None
        user = data.get("user") or {}
        session = cls(
            token=data.get("token"),
            api_key=data.get("apiKey") or data.get("api_key"),
            user_id=data.get("userId") or data.get("user_id") or user.get("_id") or user.get("id"),
            role=data.get("role") or user.get("role"),
            organization_id=(data.get("organizationId") or data.get("organization_id")
                             or user.get("organization")),
        )
        return session if session.valid else None
