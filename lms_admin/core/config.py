import os
from dotenv import load_dotenv

load_dotenv(override=False)

MONGODB_URI = os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB_NAME = os.environ.get("MONGODB_DB_NAME", "lms")

JWT_SECRET = os.environ.get("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_DAYS = int(os.environ.get("JWT_EXPIRES_DAYS", "30"))
ADMIN_ROLE = os.environ.get("ADMIN_ROLE", "Admin")

MEDIA_BACKEND = os.environ.get("MEDIA_BACKEND", "cloudinary").lower()
CLOUDINARY_CLOUD_NAME = os.environ.get("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.environ.get("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.environ.get("CLOUDINARY_API_SECRET")

IDENTITY_BACKEND = os.environ.get("IDENTITY_BACKEND", "firebase").lower()
FIREBASE_CREDENTIALS = os.environ.get("FIREBASE_CREDENTIALS")

CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "*")

# Collection names as written by the platform's ODM models.
COLLECTIONS = {
    "admin": "admins",
    "student": "students",
    "instructor": "instructors",
    "course": "courses",
    "payment": "payments",
    "post": "communityposts",
}
