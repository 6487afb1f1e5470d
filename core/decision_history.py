# core/decision_history.py

import logging
from typing import List
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .config import settings
from .errors import PersistenceUnavailable
from .models import Decision, DecisionRecord

logger = logging.getLogger(__name__)

class DecisionHistoryManager:
    """Handles all database operations for the per-farm decision history."""
    def __init__(self, db_name: str = settings.mongo_db_name, collection=None):
        if collection is None:
            self.client = MongoClient(settings.final_mongo_uri, serverSelectionTimeoutMS=2000)
            collection = self.client[db_name]["decisions"]
            try:
                collection.create_index([("farm_id", 1), ("produced_at", -1)])
                logger.info("---DECISION HISTORY: Connected to MongoDB---")
            except PyMongoError as e:
                logger.warning("---DECISION HISTORY: MongoDB unreachable, index not created: %s---", e)
        self.decisions_collection = collection

    def add_decision(self, farm_id: str, decision: Decision):
        record = DecisionRecord(
            farm_id=farm_id,
            action=decision.action,
            urgency=decision.urgency,
            title=decision.title,
            reason=decision.reason,
            duration_minutes=decision.duration_minutes,
            source=decision.source,
            produced_at=decision.produced_at,
        )
        try:
            self.decisions_collection.insert_one(record.model_dump(mode="python"))
        except PyMongoError as e:
            raise PersistenceUnavailable(f"Could not save decision for farm {farm_id}: {e}") from e
        logger.debug("---DECISION HISTORY: Saved %s decision for farm %s---", decision.action.value, farm_id)

    def get_recent_decisions(self, farm_id: str, limit: int = 10) -> List[DecisionRecord]:
        try:
            cursor = self.decisions_collection.find({"farm_id": farm_id}).sort("produced_at", -1).limit(limit)
            return [DecisionRecord(**{k: v for k, v in doc.items() if k != "_id"}) for doc in cursor]
        except PyMongoError as e:
            raise PersistenceUnavailable(f"Could not load decisions for farm {farm_id}: {e}") from e
