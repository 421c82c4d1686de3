"""
MongoDB access for the attendance service.

`db` is None when DATABASE_URL / DATABASE_NAME are not configured; callers check
for that and answer 500 instead of failing at import time.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo import MongoClient

from config import settings

logger = logging.getLogger(__name__)

db = None

if settings.DATABASE_URL and settings.DATABASE_NAME:
    try:
        # tz_aware so stored UTC datetimes come back as aware instants
        _client = MongoClient(settings.DATABASE_URL, tz_aware=True, serverSelectionTimeoutMS=5000)
        db = _client[settings.DATABASE_NAME]
    except Exception as e:
        logger.warning("MongoDB client could not be created: %s", e)
        db = None


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
