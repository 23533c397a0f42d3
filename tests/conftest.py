import os

os.environ["JWT_SECRET"] = "test-secret"
os.environ["MONGODB_URI"] = "mongodb://localhost:27017"
os.environ["MEDIA_BACKEND"] = "none"
os.environ["IDENTITY_BACKEND"] = "none"

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId

from lms_admin.api.app import create_app
from lms_admin.core.auth import AuthService, auth_service
from lms_admin.core.config import COLLECTIONS
from lms_admin.models.database import DocumentStore
from lms_admin.services.admin_service import AdminService
from lms_admin.services.identity_provider import IdentityProvider
from lms_admin.services.media_host import MediaHost

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _matches(doc: Dict[str, Any], query: Optional[Dict[str, Any]]) -> bool:
    for key, expected in (query or {}).items():
        actual = doc.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if actual not in expected["$in"]:
                return False
        elif actual != expected:
            return False
    return True


def _project(doc: Dict[str, Any], projection: Optional[Dict[str, int]]) -> Dict[str, Any]:
    doc = copy.deepcopy(doc)
    if not projection:
        return doc
    if all(v == 0 for v in projection.values()):
        return {k: v for k, v in doc.items() if k not in projection}
    keep = set(projection) | {"_id"}
    return {k: v for k, v in doc.items() if k in keep}


class InMemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.deletes: List[tuple] = []

    def insert(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        doc.setdefault("_id", ObjectId())
        self.collections.setdefault(collection, []).append(doc)
        return doc

    def find(self, collection, query=None, projection=None, sort=None):
        docs = [d for d in self.collections.get(collection, []) if _matches(d, query)]
        for field, direction in reversed(list(sort or [])):
            docs.sort(key=lambda d: d.get(field), reverse=direction < 0)
        return [_project(d, projection) for d in docs]

    def find_one(self, collection, query=None, projection=None, sort=None):
        docs = self.find(collection, query, projection, sort)
        return docs[0] if docs else None

    def count(self, collection, query=None):
        return len(self.find(collection, query))

    def delete_one(self, collection, query):
        docs = self.collections.get(collection, [])
        for i, doc in enumerate(docs):
            if _matches(doc, query):
                del docs[i]
                self.deletes.append((collection, doc["_id"]))
                return 1
        return 0


class RecordingMediaHost(MediaHost):
    def __init__(self, failing: Optional[set] = None) -> None:
        self.calls: List[tuple] = []
        self.failing = failing or set()

    def destroy(self, public_id: str, resource_type: str) -> None:
        self.calls.append((public_id, resource_type))
        if public_id in self.failing:
            raise RuntimeError(f"cloud unavailable for {public_id}")


class RecordingIdentityProvider(IdentityProvider):
    def __init__(self, users: Optional[Dict[str, str]] = None, fail_lookup: bool = False):
        self.users = dict(users or {})
        self.fail_lookup = fail_lookup
        self.lookups: List[str] = []
        self.deleted: List[str] = []

    def find_user_id_by_email(self, email: str) -> Optional[str]:
        self.lookups.append(email)
        if self.fail_lookup:
            raise RuntimeError("identity provider unreachable")
        return self.users.get(email)

    def delete_user(self, uid: str) -> None:
        self.deleted.append(uid)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def media_host() -> RecordingMediaHost:
    return RecordingMediaHost()


@pytest.fixture
def identity_provider() -> RecordingIdentityProvider:
    return RecordingIdentityProvider()


@pytest.fixture
def service(store, media_host, identity_provider) -> AdminService:
    return AdminService(
        store=store,
        media_host=media_host,
        identity_provider=identity_provider,
        auth=AuthService(secret="test-secret"),
    )


@pytest.fixture
def client(store, media_host, identity_provider):
    app = create_app(store=store, media_host=media_host, identity_provider=identity_provider)
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    token = auth_service.issue_token(str(ObjectId()))
    return {"Authorization": f"Bearer {token}"}


def add_admin(store, email="admin@example.com", password="s3cret!") -> Dict[str, Any]:
    return store.insert(
        COLLECTIONS["admin"],
        {"email": email, "password": AuthService.hash_password(password), "name": "Root"},
    )


def add_student(store, name="Sam Student", minutes=0, **fields) -> Dict[str, Any]:
    doc = {
        "name": name,
        "email": f"{name.split()[0].lower()}@example.com",
        "profileImage": f"https://img.example.com/{name.split()[0].lower()}.png",
        "password": "hashed-password",
        "createdAt": BASE_TIME + timedelta(minutes=minutes),
        "updatedAt": BASE_TIME + timedelta(minutes=minutes),
    }
    doc.update(fields)
    return store.insert(COLLECTIONS["student"], doc)


def add_instructor(store, name="Ivy Instructor", minutes=0, **fields) -> Dict[str, Any]:
    doc = {
        "name": name,
        "email": f"{name.split()[0].lower()}@teach.example.com",
        "profileImage": f"https://img.example.com/{name.split()[0].lower()}.png",
        "password": "hashed-password",
        "bio": "Teaches things",
        "links": {"site": "https://example.com"},
        "createdAt": BASE_TIME + timedelta(minutes=minutes),
        "updatedAt": BASE_TIME + timedelta(minutes=minutes),
    }
    doc.update(fields)
    return store.insert(COLLECTIONS["instructor"], doc)


def add_course(
    store,
    instructor=None,
    title="Intro to Pottery",
    videos=2,
    cover=True,
    minutes=0,
    **fields,
) -> Dict[str, Any]:
    slug = title.lower().replace(" ", "-")
    doc = {
        "title": title,
        "description": f"All about {title}",
        "price": 49,
        "category": "Crafts",
        "level": "Beginner",
        "status": "published",
        "prerequisites": [],
        "instructor": instructor["_id"] if instructor else None,
        "coverImage": (
            {"url": f"https://cdn.example.com/{slug}.jpg", "public_id": f"covers/{slug}"}
            if cover
            else None
        ),
        "videos": [
            {
                "_id": ObjectId(),
                "title": f"Lesson {i + 1}",
                "url": f"https://cdn.example.com/{slug}/{i}.mp4",
                "public_id": f"videos/{slug}/{i}",
            }
            for i in range(videos)
        ],
        "enrolledStudents": [],
        "progress": [],
        "createdAt": BASE_TIME + timedelta(minutes=minutes),
        "updatedAt": BASE_TIME + timedelta(minutes=minutes),
    }
    doc.update(fields)
    return store.insert(COLLECTIONS["course"], doc)
