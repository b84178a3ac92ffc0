from typing import Protocol

from fastapi import Depends, Request


class AccessPolicy(Protocol):
    def authorize(self, request: Request) -> None:
        """Raise ``AccessDenied`` to reject the request."""
        ...


class AllowAllPolicy:
    # No identity checks yet; every caller is allowed through.
    def authorize(self, request: Request) -> None:
        return None


def get_access_policy() -> AccessPolicy:
    return AllowAllPolicy()


def require_access(request: Request, policy: AccessPolicy = Depends(get_access_policy)) -> None:
    policy.authorize(request)
