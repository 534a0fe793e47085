"""
E2E Test Data Definitions

모바일 E2E 테스트용 계정 2개(기본/친구)와 결정적 ID 문서들.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

E2E_PRIMARY_EMAIL = "e2e-test@personalai.app"
E2E_PRIMARY_PASSWORD = "TestPassword123!"
E2E_PRIMARY_DISPLAY_NAME = "E2E Test User"

E2E_FRIEND_EMAIL = "e2e-friend@personalai.app"
E2E_FRIEND_PASSWORD = "TestPassword123!"
E2E_FRIEND_DISPLAY_NAME = "E2E Friend"

USERS_COLLECTION = "users"

E2E_DOC_IDS: dict[str, list[str]] = {
    "diaryEntries": ["e2e-diary-1", "e2e-diary-2", "e2e-diary-3"],
    "lifeFeedPosts": [f"e2e-lifefeed-{i}" for i in range(1, 6)],
    "locations": ["e2e-location-1", "e2e-location-2", "e2e-location-3"],
    "healthData": ["e2e-health-1", "e2e-health-2", "e2e-health-3"],
    "circles": ["e2e-circle-1"],
    "challenges": ["e2e-challenge-1"],
}

# 컬렉션 → 시드 문서 ID
E2E_COLLECTIONS: dict[str, list[str]] = {
    "textNotes": E2E_DOC_IDS["diaryEntries"],
    "lifeFeedPosts": E2E_DOC_IDS["lifeFeedPosts"],
    "locationData": E2E_DOC_IDS["locations"],
    "healthData": E2E_DOC_IDS["healthData"],
    "circles": E2E_DOC_IDS["circles"],
    "challenges": E2E_DOC_IDS["challenges"],
}


def friends_collection(uid: str) -> str:
    """사용자별 friends 서브컬렉션 경로"""
    return f"{USERS_COLLECTION}/{uid}/friends"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _days_ago(days: int) -> str:
    return (_now() - timedelta(days=days)).isoformat()


def _days_from_now(days: int) -> str:
    return (_now() + timedelta(days=days)).isoformat()


def user_profile(display_name: str, email: str) -> dict[str, Any]:
    return {
        "displayName": display_name,
        "email": email,
        "photoURL": None,
        "createdAt": _now().isoformat(),
        "preferences": {"theme": "system", "language": "en", "notifications": True},
        "subscriptionTier": "premium",
    }


def friendship(friend_uid: str, display_name: str, email: str) -> dict[str, Any]:
    return {
        "friendUid": friend_uid,
        "displayName": display_name,
        "email": email,
        "status": "accepted",
        "privacyTier": "close",
        "createdAt": _now().isoformat(),
    }


def diary_entries(uid: str) -> list[dict[str, Any]]:
    entries = [
        ("Morning Reflection", "Starting the day with a clear mind and a fresh cup of coffee. "
         "I want to focus on being more present today.", ["morning", "reflection"], "diary", 2),
        ("Badminton Session", "Played three sets of doubles at the club today. "
         "My backhand smashes are really improving.", ["badminton", "exercise"], "diary", 1),
        ("Quick thought", "Need to remember to pick up groceries on the way home tomorrow.", [], "thought", 0),
    ]
    return [
        {
            "id": doc_id,
            "userId": uid,
            "title": title,
            "content": content,
            "tags": tags,
            "type": kind,
            "createdAt": _days_ago(age),
            "updatedAt": _days_ago(age),
        }
        for doc_id, (title, content, tags, kind, age) in zip(E2E_DOC_IDS["diaryEntries"], entries)
    ]


def life_feed_posts(uid: str) -> list[dict[str, Any]]:
    posts = [
        ("daily_summary", "Your Day at a Glance",
         "You had a productive day with 8,500 steps and a visit to the badminton club."),
        ("health_milestone", "10,000 Steps Achievement",
         "You hit 12,000 steps yesterday, surpassing your 10,000-step goal."),
        ("weekly_insights", "Weekly Reflection",
         "This week you averaged 8,833 steps per day and wrote three diary entries."),
        ("location_highlight", "Exploring New Places",
         "You visited 3 distinct locations this week. Your most frequent stop was the office."),
        ("mood_check", "How Are You Feeling?",
         "Based on your recent activity and journaling, you have been in a positive and active mood."),
    ]
    return [
        {
            "id": doc_id,
            "userId": uid,
            "type": kind,
            "title": title,
            "content": content,
            "status": "active",
            "dismissed": False,
            "createdAt": _days_ago(age),
        }
        for age, (doc_id, (kind, title, content)) in enumerate(zip(E2E_DOC_IDS["lifeFeedPosts"], posts))
    ]


def locations(uid: str) -> list[dict[str, Any]]:
    places = [
        ("Home", 37.7749, -122.4194, "home", 50),
        ("SF Badminton Club", 37.7849, -122.4094, "badminton", 15),
        ("Office", 37.7949, -122.3994, "work", 30),
    ]
    now = _now().isoformat()
    return [
        {
            "id": doc_id,
            "userId": uid,
            "name": name,
            "latitude": lat,
            "longitude": lng,
            "activityTag": tag,
            "visitCount": visits,
            "createdAt": now,
            "updatedAt": now,
        }
        for doc_id, (name, lat, lng, tag, visits) in zip(E2E_DOC_IDS["locations"], places)
    ]


def health_data(uid: str) -> list[dict[str, Any]]:
    return [
        {
            "id": doc_id,
            "userId": uid,
            "type": "steps",
            "steps": steps,
            "date": _days_ago(age),
            "source": "healthkit",
            "createdAt": _days_ago(age),
        }
        for age, (doc_id, steps) in enumerate(zip(E2E_DOC_IDS["healthData"], [8500, 12000, 6000]))
    ]


def circle(primary_uid: str, friend_uid: str) -> dict[str, Any]:
    return {
        "id": E2E_DOC_IDS["circles"][0],
        "name": "Fitness Buddies",
        "description": "A circle for fitness enthusiasts",
        "members": [primary_uid, friend_uid],
        "createdBy": primary_uid,
        "createdAt": _now().isoformat(),
    }


def challenge(primary_uid: str, friend_uid: str) -> dict[str, Any]:
    return {
        "id": E2E_DOC_IDS["challenges"][0],
        "title": "10K Steps Daily",
        "description": "Walk 10,000 steps every day for a week",
        "type": "steps",
        "target": 10000,
        "duration": 7,
        "participants": [primary_uid, friend_uid],
        "status": "active",
        "createdBy": primary_uid,
        "createdAt": _now().isoformat(),
        "endDate": _days_from_now(7),
    }
