"""Authenticated actor dependencies.

Authentication itself happens upstream; the gateway in front of this
service forwards the verified user id and role as headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from ordering.order.order import ActorRole


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


def current_actor(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=ActorRole.CUSTOMER.value),
) -> Actor:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized - No user identity provided")
    try:
        role = ActorRole(x_user_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unauthorized - Unknown role '{x_user_role}'") from None
    return Actor(id=x_user_id, role=role)


def admin_actor(actor: Actor = Depends(current_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Access denied - Admin only")
    return actor
