"""Cart ownership key: a signed-in user or an anonymous session."""

from dataclasses import dataclass

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class CartOwner:
    user_id: str | None = None
    session_id: str | None = None

    def __post_init__(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError({"owner": ["A cart belongs to exactly one user or session"]})

    @classmethod
    def for_request(cls, user_id: str | None, session_id: str | None) -> "CartOwner":
        """Signed-in shoppers own durable carts; everyone else is keyed by session."""
        if user_id:
            return cls(user_id=str(user_id))
        return cls(session_id=session_id)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def filters(self) -> dict:
        if self.user_id:
            return {"user_id": self.user_id}
        return {"session_id": self.session_id}
