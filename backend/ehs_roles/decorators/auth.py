from __future__ import annotations
from typing import Optional
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request


def current_actor() -> Optional[str]:
    """Identity of the bearer token holder, or None when no token was sent.

    Tokens are optional: the identity only stamps created_by / updated_by and audit rows.
    """
    verify_jwt_in_request(optional=True)
    ident = get_jwt_identity()
    return str(ident) if ident is not None else None
