"""Admin operations over the platform's students, instructors and courses."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pymongo import DESCENDING

from lms_admin.core.auth import AuthService, auth_service
from lms_admin.core.config import COLLECTIONS
from lms_admin.core.errors import InvalidCredentialsError, NotFoundError
from lms_admin.core.logging import LogContext, get_logger
from lms_admin.core.utils import sum_amounts, to_jsonable
from lms_admin.models.database import DocumentStore
from lms_admin.models.schemas import (
    AdminPublic,
    DashboardStats,
    DeletedAccount,
    DeletedContent,
    PersonSummary,
)
from lms_admin.services.cleanup import course_media_plan, identity_account_plan
from lms_admin.services.identity_provider import IdentityProvider
from lms_admin.services.media_host import MediaHost

logger = get_logger("admin_service")

NEWEST_FIRST = [("createdAt", DESCENDING)]

SUMMARY_FIELDS = {"name": 1, "profileImage": 1}
COURSE_LIST_INSTRUCTOR_FIELDS = {"name": 1, "profileImage": 1, "email": 1}
COURSE_DETAIL_INSTRUCTOR_FIELDS = {
    "name": 1,
    "profileImage": 1,
    "email": 1,
    "bio": 1,
    "links": 1,
}
ENROLLED_STUDENT_FIELDS = {"name": 1, "profileImage": 1, "email": 1}
WITHOUT_PASSWORD = {"password": 0}


class AdminService:
    def __init__(
        self,
        store: DocumentStore,
        media_host: Optional[MediaHost] = None,
        identity_provider: Optional[IdentityProvider] = None,
        auth: AuthService = auth_service,
    ):
        self.store = store
        self.media_host = media_host
        self.identity_provider = identity_provider
        self.auth = auth

    # -- auth -------------------------------------------------------------

    def login(self, email: str, password: str) -> Dict[str, Any]:
        admin = self.store.find_one(COLLECTIONS["admin"], {"email": email})
        if not admin:
            raise NotFoundError("Admin", email)

        if not self.auth.verify_password(password, admin.get("password")):
            raise InvalidCredentialsError()

        token = self.auth.issue_token(str(admin["_id"]))
        public = AdminPublic.model_validate(to_jsonable(admin))
        return {"token": token, "admin": public.model_dump(by_alias=True)}

    # -- dashboard --------------------------------------------------------

    def dashboard_stats(self) -> Dict[str, Any]:
        payments = self.store.find(COLLECTIONS["payment"], projection={"amount": 1})
        stats = DashboardStats(
            instructors=self.store.count(COLLECTIONS["instructor"]),
            students=self.store.count(COLLECTIONS["student"]),
            courses=self.store.count(COLLECTIONS["course"]),
            totalRevenue=sum_amounts(payments),
        )
        return stats.model_dump()

    # -- students / instructors -------------------------------------------

    def _list_people(self, entity: str) -> Dict[str, Any]:
        collection = COLLECTIONS[entity]
        docs = self.store.find(collection, projection=SUMMARY_FIELDS)
        people = [
            PersonSummary.model_validate(
                {
                    "_id": str(doc["_id"]),
                    "name": doc.get("name"),
                    "image": doc.get("profileImage"),
                }
            ).model_dump(by_alias=True)
            for doc in docs
        ]
        return {"count": self.store.count(collection), f"{entity}s": people}

    def _get_person(self, entity: str, person_id: str) -> Dict[str, Any]:
        doc = self.store.find_by_id(COLLECTIONS[entity], person_id, WITHOUT_PASSWORD)
        if not doc:
            raise NotFoundError(entity.capitalize(), person_id)
        return to_jsonable(doc)

    def list_students(self) -> Dict[str, Any]:
        return self._list_people("student")

    def get_student(self, student_id: str) -> Dict[str, Any]:
        return self._get_person("student", student_id)

    def list_instructors(self) -> Dict[str, Any]:
        return self._list_people("instructor")

    def get_instructor(self, instructor_id: str) -> Dict[str, Any]:
        return self._get_person("instructor", instructor_id)

    # -- courses ----------------------------------------------------------

    def _populate(
        self, entity: str, ids: List[Any], fields: Dict[str, int]
    ) -> List[Dict[str, Any]]:
        """Resolve references in ``ids`` order, dropping ones that no longer exist."""
        found = self.store.find_by_ids(COLLECTIONS[entity], ids, fields)
        by_id = {str(doc["_id"]): doc for doc in found}
        return [by_id[str(ref)] for ref in ids if str(ref) in by_id]

    def list_courses(self) -> Dict[str, Any]:
        courses = self.store.find(COLLECTIONS["course"], sort=NEWEST_FIRST)

        instructor_ids = list({str(c["instructor"]) for c in courses if c.get("instructor")})
        instructors = {
            str(doc["_id"]): doc
            for doc in self._populate("instructor", instructor_ids, COURSE_LIST_INSTRUCTOR_FIELDS)
        }
        for course in courses:
            ref = course.get("instructor")
            course["instructor"] = instructors.get(str(ref)) if ref else None

        return {
            "count": self.store.count(COLLECTIONS["course"]),
            "courses": to_jsonable(courses),
        }

    def get_course(self, course_id: str) -> Dict[str, Any]:
        course = self.store.find_by_id(COLLECTIONS["course"], course_id)
        if not course:
            raise NotFoundError("Course", course_id)

        instructor = None
        if course.get("instructor"):
            instructor = self.store.find_by_id(
                COLLECTIONS["instructor"],
                course["instructor"],
                COURSE_DETAIL_INSTRUCTOR_FIELDS,
            )
        enrolled = self._populate(
            "student", course.get("enrolledStudents") or [], ENROLLED_STUDENT_FIELDS
        )
        videos = course.get("videos") or []

        details = {
            "_id": course["_id"],
            "title": course.get("title"),
            "description": course.get("description"),
            "price": course.get("price"),
            "category": course.get("category"),
            "level": course.get("level"),
            "status": course.get("status"),
            "prerequisites": course.get("prerequisites"),
            "instructor": instructor,
            "coverImage": course.get("coverImage"),
            "videos": [
                {
                    "index": index,
                    "title": video.get("title"),
                    "url": video.get("url"),
                    "public_id": video.get("public_id"),
                    "_id": video.get("_id"),
                }
                for index, video in enumerate(videos, start=1)
            ],
            "statistics": {
                "totalVideos": len(videos),
                "enrolledStudentsCount": len(enrolled),
                "createdAt": course.get("createdAt"),
                "updatedAt": course.get("updatedAt"),
            },
            "enrolledStudents": enrolled,
            "progress": course.get("progress"),
        }
        return to_jsonable(details)

    # -- cascading deletes ------------------------------------------------

    def _delete_external_identity(self, account: Dict[str, Any]) -> None:
        plan = identity_account_plan(account, self.identity_provider)
        if len(plan):
            plan.execute()

    def delete_course(self, course_id: str) -> Dict[str, Any]:
        course = self.store.find_by_id(COLLECTIONS["course"], course_id)
        if not course:
            raise NotFoundError("Course", course_id)

        with LogContext(entity="course", entity_id=str(course["_id"])):
            course_media_plan(course, self.media_host).execute()
            self.store.delete_by_id(COLLECTIONS["course"], course["_id"])
            logger.info(f"Deleted course {course.get('title')!r}")

        return {"message": "Course deleted successfully with all content"}

    def delete_student(self, student_id: str) -> Dict[str, Any]:
        student = self.store.find_by_id(COLLECTIONS["student"], student_id)
        if not student:
            raise NotFoundError("Student", student_id)

        with LogContext(entity="student", entity_id=str(student["_id"])):
            self._delete_external_identity(student)
            self.store.delete_by_id(COLLECTIONS["student"], student["_id"])
            logger.info(f"Deleted student {student.get('email')}")

        deleted = DeletedAccount(
            id=str(student["_id"]), name=student.get("name"), email=student.get("email")
        )
        return {
            "message": "Student deleted successfully from database and identity provider",
            "deletedStudent": deleted.model_dump(),
        }

    def delete_instructor(self, instructor_id: str) -> Dict[str, Any]:
        instructor = self.store.find_by_id(COLLECTIONS["instructor"], instructor_id)
        if not instructor:
            raise NotFoundError("Instructor", instructor_id)

        content = DeletedContent()
        with LogContext(entity="instructor", entity_id=str(instructor["_id"])):
            courses = self.store.find(
                COLLECTIONS["course"], {"instructor": instructor["_id"]}
            )
            logger.info(
                f"Found {len(courses)} courses for instructor {instructor.get('name')}"
            )

            for course in courses:
                report = course_media_plan(course, self.media_host).execute()
                content.videos += report.succeeded("video")
                content.images += report.succeeded("image")
                self.store.delete_by_id(COLLECTIONS["course"], course["_id"])
                content.courses += 1

            self._delete_external_identity(instructor)
            self.store.delete_by_id(COLLECTIONS["instructor"], instructor["_id"])
            logger.info(f"Deleted instructor {instructor.get('email')}")

        deleted = DeletedAccount(
            id=str(instructor["_id"]),
            name=instructor.get("name"),
            email=instructor.get("email"),
        )
        return {
            "message": "Instructor and all their courses deleted successfully",
            "deletedInstructor": deleted.model_dump(),
            "deletedContent": content.model_dump(),
        }

    # -- activity ---------------------------------------------------------

    def _post_author(self, author_ref: Any) -> Optional[Dict[str, Any]]:
        if not author_ref:
            return None
        for entity in ("student", "instructor"):
            author = self.store.find_by_id(COLLECTIONS[entity], author_ref, SUMMARY_FIELDS)
            if author:
                return author
        return None

    def recent_activity(self) -> Dict[str, Any]:
        post = self.store.find_one(COLLECTIONS["post"], sort=NEWEST_FIRST)
        student = self.store.find_one(
            COLLECTIONS["student"],
            projection={**SUMMARY_FIELDS, "createdAt": 1},
            sort=NEWEST_FIRST,
        )
        instructor = self.store.find_one(
            COLLECTIONS["instructor"],
            projection={**SUMMARY_FIELDS, "createdAt": 1},
            sort=NEWEST_FIRST,
        )
        course = self.store.find_one(COLLECTIONS["course"], sort=NEWEST_FIRST)

        latest_post = None
        if post:
            author = self._post_author(post.get("author")) or {}
            latest_post = {
                "id": post["_id"],
                "authorName": author.get("name"),
                "authorImage": author.get("profileImage"),
                "type": post.get("type"),
                "content": post.get("content"),
                "createdAt": post.get("createdAt"),
            }

        latest_course = None
        if course:
            owner = None
            if course.get("instructor"):
                owner = self.store.find_by_id(
                    COLLECTIONS["instructor"], course["instructor"], {"name": 1}
                )
            latest_course = {
                "id": course["_id"],
                "title": course.get("title"),
                "price": course.get("price"),
                "coverImage": (course.get("coverImage") or {}).get("url"),
                "instructorName": owner.get("name") if owner else None,
                "createdAt": course.get("createdAt"),
            }

        return to_jsonable(
            {
                "latestPost": latest_post,
                "latestStudent": _person_activity(student),
                "latestInstructor": _person_activity(instructor),
                "latestCourse": latest_course,
            }
        )


def _person_activity(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return None
    return {
        "id": doc["_id"],
        "name": doc.get("name"),
        "profileImage": doc.get("profileImage"),
        "createdAt": doc.get("createdAt"),
    }
