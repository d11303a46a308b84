"""Gateway dependency for the user directory router.

Applications provide the gateway by overriding ``get_user_gateway``::

    app.dependency_overrides[get_user_gateway] = lambda: gateway
"""

from fastapi import HTTPException, status

from ...features.users.services.user_directory_gateway import UserDirectoryGateway


def get_user_gateway() -> UserDirectoryGateway:
    """Placeholder for the user directory gateway dependency."""
    raise HTTPException(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        detail="User directory gateway not configured. Application must override get_user_gateway."
    )
