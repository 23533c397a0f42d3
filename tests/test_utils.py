from datetime import datetime, timezone

from bson import ObjectId

from lms_admin.core.utils import has_external_identity, public_id_of, sum_amounts, to_jsonable
from lms_admin.models.database import to_object_id


def test_to_jsonable():
    oid = ObjectId()
    when = datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    doc = {"_id": oid, "createdAt": when, "videos": [{"_id": oid, "title": "a"}], "price": 10}
    assert to_jsonable(doc) == {
        "_id": str(oid),
        "createdAt": "2025-03-04T05:06:07+00:00",
        "videos": [{"_id": str(oid), "title": "a"}],
        "price": 10,
    }
    assert to_jsonable(None) is None


def test_has_external_identity():
    assert has_external_identity({"googleId": "g"})
    assert has_external_identity({"githubId": "gh"})
    assert not has_external_identity({"googleId": "", "githubId": None})
    assert not has_external_identity({})
    assert not has_external_identity(None)


def test_sum_amounts():
    assert sum_amounts([]) == 0
    assert sum_amounts([{"amount": 5}, {}, {"amount": None}, {"amount": 2.5}]) == 7.5


def test_public_id_of():
    assert public_id_of({"url": "u", "public_id": "p"}) == "p"
    assert public_id_of({"url": "u", "public_id": ""}) is None
    assert public_id_of(None) is None


def test_to_object_id():
    oid = ObjectId()
    assert to_object_id(oid) is oid
    assert to_object_id(str(oid)) == oid
    assert to_object_id("nope") is None
    assert to_object_id(123) is None
