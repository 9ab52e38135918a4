"""
User repository for database operations.
Handles CRUD operations for parent profiles, keyed by Clerk user ID.
"""
from typing import Optional, Dict, Any
from datetime import datetime

from storytime.shared.logging import ServiceLogger
from storytime.shared.models import UserData

from ..core.database import db_manager

logger = ServiceLogger("user-repo")

USERS_TABLE = 'users'


class UserRepository:
    """Repository for user profile operations"""

    def __init__(self):
        self.db = db_manager

    def get_user(self, clerk_id: str) -> Optional[UserData]:
        """
        Get user by Clerk ID.

        Args:
            clerk_id: Clerk user ID

        Returns:
            UserData if found
        """
        try:
            client = self.db.get_service_client()

            result = client.table(USERS_TABLE).select('*').eq('clerk_id', clerk_id).limit(1).execute()

            if not result.data:
                return None

            return UserData.from_row(result.data[0])

        except Exception as e:
            logger.error(f"Failed to get user {clerk_id}", e)
            raise

    def save_user(self, clerk_id: str, fields: Dict[str, Any]) -> UserData:
        """
        Create or update the profile for a Clerk identity.

        Args:
            clerk_id: Clerk user ID
            fields: Column values to write

        Returns:
            Saved user data
        """
        try:
            client = self.db.get_service_client()

            user_data = {
                **fields,
                "clerk_id": clerk_id,
                "updated_at": datetime.utcnow().isoformat(),
            }

            # Single-statement upsert; column defaults fill created_at and
            # onboarding_complete on first insert
            result = client.table(USERS_TABLE).upsert(user_data, on_conflict="clerk_id").execute()

            if not result.data:
                raise Exception("Failed to save user")

            logger.success(f"Saved profile for user {clerk_id}")

            return UserData.from_row(result.data[0])

        except Exception as e:
            logger.error(f"Failed to save user {clerk_id}", e)
            raise

    def update_user_voice_clone(self, clerk_id: str, voice_clone_id: str, persona_id: str = None) -> bool:
        """
        Store the vendor voice clone for a user.

        Args:
            clerk_id: Clerk user ID
            voice_clone_id: Cloned voice ID
            persona_id: Optional persona ID

        Returns:
            True if a profile was updated
        """
        fields = {"voice_clone_id": voice_clone_id}
        if persona_id:
            fields["persona_id"] = persona_id
        return self._update(clerk_id, fields)

    def complete_onboarding(self, clerk_id: str) -> UserData:
        """Mark onboarding complete, creating the profile if needed"""
        return self.save_user(clerk_id, {"onboarding_complete": True})

    def _update(self, clerk_id: str, fields: Dict[str, Any]) -> bool:
        try:
            client = self.db.get_service_client()

            update_data = {**fields, "updated_at": datetime.utcnow().isoformat()}
            result = client.table(USERS_TABLE).update(update_data).eq('clerk_id', clerk_id).execute()

            updated = bool(result.data)
            if updated:
                logger.success(f"Updated user {clerk_id}: {', '.join(fields)}")
            else:
                logger.warning(f"No profile to update for user {clerk_id}")

            return updated

        except Exception as e:
            logger.error(f"Failed to update user {clerk_id}", e)
            raise


# Global repository instance
user_repository = UserRepository()
