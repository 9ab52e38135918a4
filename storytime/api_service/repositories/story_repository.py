"""
Story repository for database operations.
Stories are append-only and always belong to one user.
"""
from typing import List, Optional
from datetime import datetime

from storytime.shared.logging import ServiceLogger
from storytime.shared.models import StoryData, StoryMode

from ..core.database import db_manager

logger = ServiceLogger("story-repo")

STORIES_TABLE = 'stories'


class StoryRepository:
    """Repository for story operations"""

    def __init__(self):
        self.db = db_manager

    def save_story(
        self,
        clerk_user_id: str,
        story_id: str,
        mode: StoryMode,
        text: str,
        paragraphs: List[str]
    ) -> StoryData:
        """
        Persist a new story.

        Args:
            clerk_user_id: Owner's Clerk user ID
            story_id: Unique story ID
            mode: Story generation mode
            text: Full story text
            paragraphs: Story split into paragraphs

        Returns:
            Created story data
        """
        try:
            client = self.db.get_service_client()

            now = datetime.utcnow().isoformat()
            story_data = {
                "story_id": story_id,
                "clerk_user_id": clerk_user_id,
                "mode": mode.value,
                "text": text,
                "paragraphs": paragraphs,
                "created_at": now,
                "updated_at": now
            }

            result = client.table(STORIES_TABLE).insert(story_data).execute()

            if not result.data:
                raise Exception("Failed to create story")

            logger.success(f"Created story: {story_id}")

            return StoryData.from_row(result.data[0])

        except Exception as e:
            logger.error("Failed to create story", e)
            raise

    def get_story(self, story_id: str, clerk_user_id: str = None) -> Optional[StoryData]:
        """
        Get story by ID.

        Args:
            story_id: Story ID
            clerk_user_id: Optional owner ID for ownership verification

        Returns:
            Story data if found
        """
        try:
            client = self.db.get_service_client()

            query = client.table(STORIES_TABLE).select('*').eq('story_id', story_id)

            if clerk_user_id:
                query = query.eq('clerk_user_id', clerk_user_id)

            result = query.limit(1).execute()

            if not result.data:
                return None

            return StoryData.from_row(result.data[0])

        except Exception as e:
            logger.error(f"Failed to get story {story_id}", e)
            raise

    def get_latest_story_for_user(self, clerk_user_id: str) -> Optional[StoryData]:
        """Most recent story for a user"""
        stories = self.get_stories_for_user(clerk_user_id, limit=1)
        return stories[0] if stories else None

    def get_stories_for_user(self, clerk_user_id: str, limit: int = None) -> List[StoryData]:
        """
        Get a user's stories, newest first.

        Args:
            clerk_user_id: Owner's Clerk user ID
            limit: Optional maximum number of stories

        Returns:
            List of stories
        """
        try:
            client = self.db.get_service_client()

            query = client.table(STORIES_TABLE)\
                .select('*')\
                .eq('clerk_user_id', clerk_user_id)\
                .order('created_at', desc=True)

            if limit:
                query = query.limit(limit)

            result = query.execute()

            logger.debug(f"Retrieved {len(result.data)} stories for user {clerk_user_id}")

            return [StoryData.from_row(row) for row in result.data]

        except Exception as e:
            logger.error(f"Failed to get stories for user {clerk_user_id}", e)
            raise


# Global repository instance
story_repository = StoryRepository()
