"""
Demo Data Definitions

데모 계정(Alex Chen)과 친구 계정(Sarah Johnson) 시드 문서 생성기.
최근 N일 데이터 + 1년 전 며칠치 (This Day Memories 용).
"""

from datetime import datetime, timedelta, timezone
from typing import Any

DEMO_EMAIL = "demo-appstore@personalai.app"
DEMO_PASSWORD = "DemoScreenshot2026!"
DEMO_DISPLAY_NAME = "Alex Chen"

DEMO_FRIEND_EMAIL = "demo-friend@personalai.app"
DEMO_FRIEND_PASSWORD = "DemoFriend2026!"
DEMO_FRIEND_DISPLAY_NAME = "Sarah Johnson"

# 업로드 간격을 흉내내는 배치 크기
WRITE_BATCH_SIZE = 8

_PLACES = [
    ("Blue Bottle Coffee", "cafe", 37.7763, -122.4233),
    ("Golden Gate Park", "park", 37.7694, -122.4862),
    ("Equinox SoMa", "gym", 37.7810, -122.3990),
    ("Office - Market St", "work", 37.7897, -122.4000),
    ("Ferry Building", "market", 37.7955, -122.3937),
]

_WORKOUTS = [("Running", 35), ("Yoga", 50), ("Cycling", 45), ("Strength", 40)]

_VOICE_NOTES = [
    "Team offsite was amazing. We built a prototype analytics dashboard in six hours.",
    "Long run along the Embarcadero this morning, felt great after a rest day.",
    "Note to self: book the camping site for the long weekend before it fills up.",
    "Dinner with Sarah and the crew, we should do the cooking club monthly.",
]

_TEXT_NOTES = [
    ("Recipe app idea", "Photo of the fridge, ingredients identified, recipes suggested."),
    ("Reading list", "Finish the systems design book, start the climbing memoir."),
    ("Weekly reflection", "Slept better this week. More steps, fewer late meetings."),
]

_PHOTO_DESCRIPTIONS = [
    "Sunset over the bay from Twin Peaks",
    "Latte art at the corner cafe",
    "Trail view on the Dipsea",
    "Homemade ramen night",
]

_FRIEND_POSTS = [
    "Planning a beach day for Saturday, who's in?",
    "Hit a new personal best on the 10K!",
    "Sourdough attempt number four finally has an open crumb",
    "Farmers market haul: peaches everywhere",
    "Sunrise yoga at the park before work",
]

_CIRCLE_TIERS = [
    ("acquaintances", "Acquaintances", {"shareActivities": True}),
    ("friends", "Friends", {"shareActivities": True, "shareDiary": True, "sharePhotos": True}),
    ("close", "Close Friends", {"shareActivities": True, "shareDiary": True, "sharePhotos": True,
                                "shareHealth": True, "shareLocation": True}),
]


def days_ago(days: int, hour: int = 12, minute: int = 0) -> datetime:
    """오늘 기준 days일 전 지정 시각 (UTC)"""
    d = datetime.now(timezone.utc) - timedelta(days=days)
    return d.replace(hour=hour, minute=minute, second=0, microsecond=0)


def days_ago_iso(days: int, hour: int = 12, minute: int = 0) -> str:
    return days_ago(days, hour, minute).isoformat()


def _history_days(days: int) -> list[int]:
    # 1년 전 7일치 포함
    return list(range(days + 1)) + list(range(365, 372))


def health_docs(uid: str, days: int) -> list[dict[str, Any]]:
    docs: list[dict[str, Any]] = []
    for day in _history_days(days):
        docs.append({
            "userId": uid,
            "type": "steps",
            "value": 6000 + (day * 379) % 7000,
            "unit": "count",
            "startDate": days_ago_iso(day, 0),
            "endDate": days_ago_iso(day, 23, 59),
        })
        if day % 3 == 0:
            workout, minutes = _WORKOUTS[day % len(_WORKOUTS)]
            docs.append({
                "userId": uid,
                "type": "workout",
                "workoutType": workout,
                "durationMin": minutes,
                "startDate": days_ago_iso(day, 7),
            })
    return docs


def location_docs(uid: str, days: int) -> list[dict[str, Any]]:
    docs: list[dict[str, Any]] = []
    for day in range(0, days + 1, 2):
        name, activity, lat, lng = _PLACES[day % len(_PLACES)]
        docs.append({
            "userId": uid,
            "placeName": name,
            "activity": activity,
            "latitude": lat,
            "longitude": lng,
            "visitedAt": days_ago_iso(day, 9 + day % 8),
        })
    return docs


def voice_note_docs(uid: str) -> list[dict[str, Any]]:
    return [
        {"userId": uid, "transcription": text, "durationSec": 30 + i * 12, "createdAt": days_ago_iso(i * 5 + 1, 20)}
        for i, text in enumerate(_VOICE_NOTES)
    ]


def text_note_docs(uid: str) -> list[dict[str, Any]]:
    return [
        {"userId": uid, "title": title, "content": content, "createdAt": days_ago_iso(i * 7 + 2, 21)}
        for i, (title, content) in enumerate(_TEXT_NOTES)
    ]


def photo_docs(uid: str) -> list[dict[str, Any]]:
    return [
        {"userId": uid, "description": desc, "storagePath": f"users/{uid}/photos/demo_{i}.jpg",
         "takenAt": days_ago_iso(i * 4 + 1, 18)}
        for i, desc in enumerate(_PHOTO_DESCRIPTIONS)
    ]


def friend_post_docs(friend_uid: str, alex_uid: str) -> list[dict[str, Any]]:
    return [
        {
            "userId": friend_uid,
            "content": text,
            "publishedAt": days_ago_iso(i, 10 + i),
            "sharing": {"isShareable": True, "sharedToFriendIds": [alex_uid]},
            "likedBy": [],
            "likeCount": 0,
            "comments": [],
            "viewCount": 0,
        }
        for i, text in enumerate(_FRIEND_POSTS)
    ]


def friendship_docs(alex_uid: str, friend_uid: str) -> list[dict[str, Any]]:
    """양방향 친구 관계 문서 2건"""
    created = days_ago_iso(30)
    return [
        {
            "docId": f"{alex_uid}_{friend_uid}",
            "userId": alex_uid,
            "friendUid": friend_uid,
            "friendDisplayName": DEMO_FRIEND_DISPLAY_NAME,
            "status": "accepted",
            "createdAt": created,
        },
        {
            "docId": f"{friend_uid}_{alex_uid}",
            "userId": friend_uid,
            "friendUid": alex_uid,
            "friendDisplayName": DEMO_DISPLAY_NAME,
            "status": "accepted",
            "createdAt": created,
        },
    ]


def circle_docs(alex_uid: str, friend_uid: str) -> list[dict[str, Any]]:
    """사전 정의 공유 서클 (Sarah는 Close Friends 멤버)"""
    return [
        {
            "userId": alex_uid,
            "tier": tier,
            "name": name,
            "dataSharing": sharing,
            "memberIds": [friend_uid] if tier == "close" else [],
            "createdAt": days_ago_iso(30),
        }
        for tier, name, sharing in _CIRCLE_TIERS
    ]


def engagement_docs(alex_uid: str, friend_uid: str) -> list[dict[str, Any]]:
    """Sarah→Alex, Alex→Sarah 좋아요/댓글/조회"""
    now = datetime.now(timezone.utc)

    def hours_ago(h: float) -> str:
        return (now - timedelta(hours=h)).isoformat()

    return [
        {"userId": friend_uid, "targetUserId": alex_uid, "postIndex": 0, "type": "like", "at": hours_ago(2)},
        {"userId": friend_uid, "targetUserId": alex_uid, "postIndex": 0, "type": "comment",
         "text": "This is amazing! So proud of you", "at": hours_ago(1.5)},
        {"userId": friend_uid, "targetUserId": alex_uid, "postIndex": 1, "type": "like", "at": hours_ago(8)},
        {"userId": alex_uid, "targetUserId": friend_uid, "postIndex": 0, "type": "view", "at": hours_ago(1)},
        {"userId": alex_uid, "targetUserId": friend_uid, "postIndex": 0, "type": "like", "at": hours_ago(0.5)},
        {"userId": alex_uid, "targetUserId": friend_uid, "postIndex": 2, "type": "like", "at": hours_ago(3.5)},
        {"userId": alex_uid, "targetUserId": friend_uid, "postIndex": 4, "type": "view", "at": hours_ago(20)},
    ]
