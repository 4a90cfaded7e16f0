"""Caller role computation for escrow operations."""

from __future__ import annotations

from .errors import ErrorCode, err
from .types import ChainState, EscrowRecord, Role


def is_expired(state: ChainState, escrow: EscrowRecord) -> bool:
    return state.global_state.block_height > escrow.timeout_height


def roles_for(state: ChainState, caller: bytes, escrow: EscrowRecord) -> Role:
    """Roles `caller` holds on `escrow` at the current height.

    A caller may hold several roles at once (the platform owner can also be a
    buyer). `Role.ANY` is granted to every caller after the timeout.
    """
    roles = Role.NONE
    if caller == escrow.buyer:
        roles |= Role.BUYER
    if caller == escrow.seller:
        roles |= Role.SELLER
    if caller == state.global_state.platform_owner:
        roles |= Role.OWNER
    if is_expired(state, escrow):
        roles |= Role.ANY
    return roles


def require_role(held: Role, allowed: Role, action: str) -> None:
    if not held & allowed:
        raise err(ErrorCode.UNAUTHORIZED, f"caller not allowed to {action}")


def require_owner(state: ChainState, caller: bytes, action: str) -> None:
    if caller != state.global_state.platform_owner:
        raise err(ErrorCode.UNAUTHORIZED, f"only the platform owner may {action}")
