"""User profile lookups."""

from education_api.core.exceptions import NotFoundError
from education_api.models.user import User
from education_api.services.credential_store import CredentialStore


class UserService:
    def __init__(self, store: CredentialStore):
        self.store = store

    async def get_by_id(self, user_id: int) -> User:
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with ID {user_id} does not exist.")
        return user
