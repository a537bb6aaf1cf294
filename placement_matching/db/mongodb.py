"""
MongoDB Connection Utility

MongoDB stores:
- Student profiles (skills, projects, certifications, readiness signals)
- Job postings, including the cached match list of each job

The matching engine only reads students and writes the
matchedStudents / matchCount / lastMatchedAt fields of a job.
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from placement_matching.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(get_settings().mongodb_uri, tz_aware=True)
    return _client


def get_mongo_db() -> Database:
    """Get the platform database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """
    Get a specific collection.
    Collections we use:
    - students: Student profiles (read-only for matching)
    - jobs: Job postings and their match lists
    """
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "students": "students",
    "jobs": "jobs",
}


def init_mongo_indexes():
    """
    Create indexes used by the matching engine.
    Call this once during app startup.
    """
    db = get_mongo_db()

    # Sweep over active jobs
    db[COLLECTIONS["jobs"]].create_index([("status", ASCENDING)])

    # Reading back the best matches of a job
    db[COLLECTIONS["jobs"]].create_index([("matchedStudents.matchScore", DESCENDING)])

    logger.info("MongoDB indexes created successfully")
