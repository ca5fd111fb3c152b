"""
Database Connection
Connects to MongoDB and declares the indexes the lead store relies on
"""
import logging
from functools import lru_cache

from dotenv import load_dotenv
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from leadwave.core.config import get_settings

load_dotenv()

logger = logging.getLogger(__name__)

LEADS_COLLECTION = "leads"
CAMPAIGNS_COLLECTION = "campaigns"


@lru_cache
def get_client() -> MongoClient:
    """
    Process-wide MongoClient (thread safe, pools its own connections)

    Raises:
        RuntimeError: If MONGODB_URI is not configured
    """
    settings = get_settings()
    if not settings.mongodb_uri:
        raise RuntimeError(
            "MONGODB_URI is not configured. "
            "Set MONGODB_URI environment variable."
        )
    return MongoClient(settings.mongodb_uri, tz_aware=True)


def get_database() -> Database:
    """
    Get the application database

    Usage:
        db = get_database()
        db[LEADS_COLLECTION].find_one({"company_id": company_id})
    """
    return get_client()[get_settings().mongodb_database]


def ensure_indexes(db: Database) -> None:
    """Create the indexes the import pipeline depends on (idempotent)"""
    leads = db[LEADS_COLLECTION]
    # Uniqueness backstop for concurrent imports: one live lead per phone per company
    leads.create_index(
        [("company_id", ASCENDING), ("phone", ASCENDING)],
        name="uniq_company_phone_live",
        unique=True,
        partialFilterExpression={"is_deleted": False},
    )
    leads.create_index([("company_id", ASCENDING), ("is_deleted", ASCENDING)])
    leads.create_index([("campaign_id", ASCENDING), ("status", ASCENDING)])
    leads.create_index([("campaign_id", ASCENDING), ("assigned_to", ASCENDING)])

    campaigns = db[CAMPAIGNS_COLLECTION]
    campaigns.create_index([("company_id", ASCENDING), ("status", ASCENDING)])

    logger.info("MongoDB indexes ensured")
