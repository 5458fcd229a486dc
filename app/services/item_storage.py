"""MongoDB storage service for repair jobs."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import OperationFailure

from app.config import settings
from app.models.item import ITEM_INDEXES, PUBLIC_TRACKING_FIELDS
from app.utils.constants import STATS_KEYS, STATUS_GROUPS

logger = logging.getLogger(__name__)

SortSpec = List[Tuple[str, int]]


def to_object_id(item_id: str) -> Optional[ObjectId]:
    """Parse an item id; malformed ids map to None (treated as not found)."""
    if isinstance(item_id, ObjectId):
        return item_id
    if not item_id or not ObjectId.is_valid(item_id):
        return None
    return ObjectId(item_id)


class MongoItemStorage:
    """
    Item persistence over a motor collection.

    Query documents are built by the item service; this class only runs them.
    Every read except the backup dump and job-number lookup hides soft-deleted items.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection: AsyncIOMotorCollection = db[settings.MONGODB_ITEMS_COLLECTION]

    async def create_indexes(self) -> None:
        """Create indexes for efficient queries."""
        try:
            await self.collection.create_indexes(ITEM_INDEXES)
            logger.info("Item indexes ensured")
        except OperationFailure as e:
            logger.warning(f"Index creation error (may already exist): {e}")

    async def find_page(
        self,
        query: Dict[str, Any],
        sort: SortSpec,
        skip: int,
        limit: int,
        include_metadata: bool = False,
    ) -> List[Dict[str, Any]]:
        projection = None if include_metadata else {"metadata": 0}
        cursor = self.collection.find(query, projection).sort(sort).skip(skip).limit(limit)
        return await cursor.to_list(length=limit)

    async def count(self, query: Dict[str, Any]) -> int:
        return await self.collection.count_documents(query)

    async def status_group_counts(self) -> Dict[str, int]:
        """Totals per status group across non-deleted items in one aggregate."""
        group_stage: Dict[str, Any] = {"_id": None, "total": {"$sum": 1}}
        for group, statuses in STATUS_GROUPS.items():
            group_stage[STATS_KEYS[group]] = {
                "$sum": {"$cond": [{"$in": ["$status", statuses]}, 1, 0]}
            }

        pipeline = [
            {"$match": {"isDeleted": False}},
            {"$group": group_stage},
        ]
        result = await self.collection.aggregate(pipeline).to_list(length=1)
        raw = result[0] if result else {}
        counts = {"total": raw.get("total", 0)}
        for key in STATS_KEYS.values():
            counts[key] = raw.get(key, 0)
        return counts

    async def get_by_id(self, item_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(item_id)
        if oid is None:
            return None
        return await self.collection.find_one({"_id": oid, "isDeleted": False}, {"metadata": 0})

    async def get_by_job_number(self, job_number: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"jobNumber": job_number}, {"_id": 1})

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new item; raises DuplicateKeyError on a taken job number."""
        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def update(
        self,
        item_id: str,
        changes: Dict[str, Any],
        history_entry: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        oid = to_object_id(item_id)
        if oid is None:
            return None

        update: Dict[str, Any] = {"$set": changes}
        if history_entry is not None:
            update["$push"] = {"statusHistory": history_entry}

        return await self.collection.find_one_and_update(
            {"_id": oid, "isDeleted": False},
            update,
            projection={"metadata": 0},
            return_document=ReturnDocument.AFTER,
        )

    async def soft_delete(self, item_id: str, now: datetime) -> bool:
        oid = to_object_id(item_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid, "isDeleted": False},
            {"$set": {"isDeleted": True, "updatedAt": now}},
        )
        return result.matched_count > 0

    async def set_status_many(
        self,
        item_ids: Sequence[str],
        status: str,
        history_entry: Dict[str, Any],
        now: datetime,
    ) -> int:
        object_ids = [oid for oid in (to_object_id(i) for i in item_ids) if oid is not None]
        if not object_ids:
            return 0

        result = await self.collection.update_many(
            {"_id": {"$in": object_ids}, "isDeleted": False, "status": {"$ne": status}},
            {
                "$set": {"status": status, "updatedAt": now},
                "$push": {"statusHistory": history_entry},
            },
        )
        return result.modified_count

    async def dump_all(self) -> List[Dict[str, Any]]:
        """Every item, soft-deleted ones included, newest first."""
        cursor = self.collection.find({}).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    async def find_for_tracking(self, job_number: str, phone_number: str) -> Optional[Dict[str, Any]]:
        projection = {field: 1 for field in PUBLIC_TRACKING_FIELDS}
        projection["_id"] = 0
        return await self.collection.find_one(
            {"jobNumber": job_number, "phoneNumber": phone_number, "isDeleted": False},
            projection,
        )

    async def revenue_report(self, start: datetime, end: datetime) -> Dict[str, Any]:
        """Revenue total and per-technician breakdown in a single $facet round-trip."""
        # Actual charge wins over the estimate once it is set
        revenue_expr = {"$cond": [{"$gt": ["$finalCost", 0]}, "$finalCost", "$cost"]}

        pipeline = [
            {
                "$match": {
                    "isDeleted": False,
                    "createdAt": {"$gte": start, "$lte": end},
                    "$or": [{"cost": {"$gt": 0}}, {"finalCost": {"$gt": 0}}],
                }
            },
            {
                "$facet": {
                    "total": [{"$group": {"_id": None, "amount": {"$sum": revenue_expr}}}],
                    "breakdown": [
                        {
                            "$group": {
                                "_id": "$technicianName",
                                "totalRevenue": {"$sum": revenue_expr},
                                "deviceCount": {"$sum": 1},
                            }
                        },
                        {"$sort": {"totalRevenue": -1}},
                    ],
                }
            },
        ]
        result = await self.collection.aggregate(pipeline).to_list(length=1)
        facets = result[0] if result else {}
        total = facets.get("total") or [{}]

        return {
            "total": total[0].get("amount", 0),
            "breakdown": [
                {
                    "technicianName": row["_id"] or "Unknown",
                    "totalRevenue": row["totalRevenue"],
                    "deviceCount": row["deviceCount"],
                }
                for row in facets.get("breakdown", [])
            ],
        }

    async def key_statistics(self, start: datetime, end: datetime) -> Dict[str, Any]:
        """Device count plus the most frequent brand and issue in a date range."""
        pipeline = [
            {"$match": {"isDeleted": False, "createdAt": {"$gte": start, "$lte": end}}},
            {
                "$facet": {
                    "total": [{"$count": "count"}],
                    "brands": [
                        {"$group": {"_id": "$brand", "count": {"$sum": 1}}},
                        {"$sort": {"count": -1, "_id": 1}},
                        {"$limit": 1},
                    ],
                    "issues": [
                        {"$match": {"issue": {"$nin": [None, ""]}}},
                        {"$group": {"_id": "$issue", "count": {"$sum": 1}}},
                        {"$sort": {"count": -1, "_id": 1}},
                        {"$limit": 1},
                    ],
                }
            },
        ]
        result = await self.collection.aggregate(pipeline).to_list(length=1)
        facets = result[0] if result else {}

        total = facets.get("total") or [{}]
        brands = facets.get("brands") or [{}]
        issues = facets.get("issues") or [{}]

        return {
            "totalDevices": total[0].get("count", 0),
            "mostProcessedBrand": brands[0].get("_id") or "N/A",
            "mostCommonIssue": issues[0].get("_id") or "N/A",
        }
