"""
Database connection and management.
Handles Supabase client initialization.
"""
from typing import Any, Optional

from storytime.shared.logging import ServiceLogger
from storytime.shared.config import db_config

logger = ServiceLogger("database")


class DatabaseManager:
    """
    Manages database connections and operations.
    Implements singleton pattern for connection management.
    """

    _instance = None
    _service_client = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def _initialize_client(self):
        """Initialize the Supabase client"""
        from supabase import create_client

        if not db_config.supabase_url:
            logger.error("Supabase configuration missing")
            raise ValueError("SUPABASE_URL is required")

        key = db_config.supabase_service_role_key
        if not key:
            logger.warning("Service role key not configured - using anon key")
            key = db_config.supabase_anon_key

        if not key:
            logger.error("Supabase configuration missing")
            raise ValueError("A Supabase service role or anon key is required")

        try:
            self._service_client = create_client(db_config.supabase_url, key)
        except Exception as e:
            logger.error("Failed to initialize database client", e)
            raise

        logger.success("Database client initialized successfully")
        logger.info(f"Supabase URL: {db_config.supabase_url}")

    def get_service_client(self):
        """Get service role client, connecting on first use"""
        if self._service_client is None:
            self._initialize_client()
        return self._service_client

    def set_client(self, client: Optional[Any]):
        """Replace the underlying client. None forces a reconnect on next use."""
        self._service_client = client

    def health_check(self) -> dict:
        """Check database connection health"""
        try:
            client = self.get_service_client()
            client.table('users').select('clerk_id').limit(1).execute()

            return {
                "status": "healthy",
                "connected": True,
            }

        except Exception as e:
            logger.error("Database health check failed", e)
            return {
                "status": "unhealthy",
                "connected": False,
                "error": str(e)
            }


# Global database manager instance
db_manager = DatabaseManager()
