"""
MongoDB request log used for route search analytics.
Every function degrades to a no-op or an empty result when MongoDB is not
configured or not reachable.
"""
import logging
from datetime import datetime, timedelta, timezone

from django.conf import settings
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

logger = logging.getLogger('analytics')

# Journey lookups whose station pairs feed the route analytics.
ROUTE_ENDPOINTS = ['/api/trains/search/', '/api/trains/availability/']

# MongoDB client singleton
_mongo_client = None
_mongo_db = None
_mongo_available = None


def get_mongo_db():
    """Get MongoDB database instance (singleton pattern)."""
    global _mongo_client, _mongo_db, _mongo_available

    if _mongo_available is False:
        return None

    if not settings.MONGODB_URI:
        _mongo_available = False
        return None

    if _mongo_db is None:
        try:
            _mongo_client = MongoClient(
                settings.MONGODB_URI,
                serverSelectionTimeoutMS=3000,
                connectTimeoutMS=3000
            )
            _mongo_client.admin.command('ping')
            _mongo_db = _mongo_client[settings.MONGODB_NAME]
            _mongo_available = True
            _ensure_indexes(_mongo_db)
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.warning("MongoDB connection failed, request logging disabled: %s", e)
            _mongo_available = False
            return None

    return _mongo_db


def reset_connection():
    """Forget the cached client so the next call reconnects."""
    global _mongo_client, _mongo_db, _mongo_available
    if _mongo_client is not None:
        _mongo_client.close()
    _mongo_client = _mongo_db = _mongo_available = None


def _ensure_indexes(db):
    try:
        db.api_logs.create_index([("timestamp", -1)])
        db.api_logs.create_index([("endpoint", 1), ("timestamp", -1)])
        db.api_logs.create_index([("request_params.source", 1), ("request_params.destination", 1)])
        db.route_analytics.create_index([("search_count", -1)])
        db.route_analytics.create_index([("source", 1), ("destination", 1)], unique=True)
    except PyMongoError as e:
        logger.warning("Error creating MongoDB indexes: %s", e)


def log_api_request(endpoint, method, user_id, request_params,
                    response_status, execution_time_ms, results_count=None):
    """Store one API request and count its station pair for route analytics."""
    db = get_mongo_db()
    if db is None:
        return

    log_entry = {
        "endpoint": endpoint,
        "method": method,
        "user_id": user_id,
        "request_params": request_params,
        "response_status": response_status,
        "execution_time_ms": execution_time_ms,
        "timestamp": datetime.now(timezone.utc)
    }
    if results_count is not None:
        log_entry["results_count"] = results_count

    try:
        db.api_logs.insert_one(log_entry)
        if endpoint in ROUTE_ENDPOINTS and response_status < 400 \
                and request_params.get('source') and request_params.get('destination'):
            update_route_analytics(request_params['source'], request_params['destination'])
    except PyMongoError as e:
        logger.warning("Error logging to MongoDB: %s", e)


def update_route_analytics(source, destination):
    """Increment the search count of a source-destination station pair."""
    db = get_mongo_db()
    if db is None:
        return

    try:
        db.route_analytics.update_one(
            {"source": source.strip().upper(), "destination": destination.strip().upper()},
            {
                "$inc": {"search_count": 1},
                "$set": {"last_updated": datetime.now(timezone.utc)}
            },
            upsert=True
        )
    except PyMongoError as e:
        logger.warning("Error updating route analytics: %s", e)


def get_top_routes(limit=5):
    """Most looked-up station pairs, highest count first."""
    db = get_mongo_db()
    if db is None:
        return []

    try:
        cursor = db.route_analytics.find(
            {}, {"_id": 0, "source": 1, "destination": 1, "search_count": 1}
        ).sort("search_count", -1).limit(limit)
        return list(cursor)
    except PyMongoError as e:
        logger.warning("Error getting top routes: %s", e)
        return []


def get_log_stats(hours=24, endpoint=None):
    """Aggregated request counts, error rate and response times for a window."""
    db = get_mongo_db()
    if db is None:
        return {'total_requests': 0, 'error_message': 'MongoDB not available'}

    match_stage = {"timestamp": {"$gte": datetime.now(timezone.utc) - timedelta(hours=hours)}}
    if endpoint:
        match_stage["endpoint"] = endpoint

    pipeline = [
        {"$match": match_stage},
        {
            "$facet": {
                "total": [{"$count": "count"}],
                "by_endpoint": [
                    {"$group": {"_id": "$endpoint", "count": {"$sum": 1}, "avg_time": {"$avg": "$execution_time_ms"}}},
                    {"$sort": {"count": -1}},
                    {"$limit": 10}
                ],
                "response_times": [
                    {"$group": {
                        "_id": None,
                        "avg_ms": {"$avg": "$execution_time_ms"},
                        "max_ms": {"$max": "$execution_time_ms"}
                    }}
                ],
                "errors": [
                    {"$match": {"response_status": {"$gte": 400}}},
                    {"$count": "count"}
                ]
            }
        }
    ]

    try:
        result = list(db.api_logs.aggregate(pipeline))
    except PyMongoError as e:
        logger.warning("Error getting log stats: %s", e)
        return {'total_requests': 0, 'error_message': 'Log statistics unavailable'}

    if not result:
        return {'total_requests': 0}

    stats = result[0]
    total = stats['total'][0]['count'] if stats['total'] else 0
    errors = stats['errors'][0]['count'] if stats['errors'] else 0
    response_times = stats['response_times'][0] if stats['response_times'] else {}

    return {
        'total_requests': total,
        'error_count': errors,
        'error_rate': round((errors / total * 100), 2) if total > 0 else 0,
        'response_time_ms': {
            'avg': round(response_times.get('avg_ms') or 0, 2),
            'max': round(response_times.get('max_ms') or 0, 2),
        },
        'top_endpoints': [
            {
                'endpoint': e['_id'],
                'requests': e['count'],
                'avg_time_ms': round(e['avg_time'], 2) if e['avg_time'] else 0
            }
            for e in stats['by_endpoint']
        ]
    }


def is_mongodb_available():
    """Check if MongoDB is available."""
    if _mongo_available is not None:
        return _mongo_available

    get_mongo_db()
    return _mongo_available or False
