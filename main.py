import logging
import math
import time
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError
from bson.errors import InvalidId
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import database
from auth import admins, create_access_token, require_admin
from catalog import COURSES
from database import (
    DatabaseNotConfigured,
    count_documents,
    create_document,
    delete_document,
    find_one,
    get_document,
    get_documents,
    paginate,
    replace_all,
    search_filter,
    serialize_doc,
    set_status,
)
from logging_config import configure_from_env
from schemas import (
    AdminIdentity,
    Contact,
    ContactSubmission,
    LoginRequest,
    MessageStatus,
    StatusUpdate,
    Student,
    StudentDocuments,
    StudentRegistration,
    StudentStatus,
)
from uploads import ImageStorage, InvalidImage, get_storage, image_extension

configure_from_env()
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()
STUDENT_SEARCH_FIELDS = ("studentName", "email", "registrationNo", "phone")
MESSAGE_SEARCH_FIELDS = ("fullName", "email", "subject", "phone")
IMAGE_FIELDS = ("photo", "signature")
# wrong paths and wrong methods on known paths both answer "Route not found"
UNKNOWN_ROUTE = ((404, "Not Found"), (405, "Method Not Allowed"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"City College API starting ({config.ENVIRONMENT})")
    if config.JWT_SECRET == config.DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is not set, signing admin tokens with the built-in default")
    database.ensure_indexes()
    yield
    database.close()
    logger.info("MongoDB connection closed")


app = FastAPI(title="City College API", version="2.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept"],
    expose_headers=["Content-Range", "X-Content-Range"],
    max_age=600,
)

if config.is_development():
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)


# --------- Error Handling ---------

@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    if (exc.status_code, exc.detail) in UNKNOWN_ROUTE:
        return JSONResponse(status_code=404, content={
            "success": False,
            "message": "Route not found",
            "path": request.url.path,
            "method": request.method,
        })
    if isinstance(exc.detail, dict):
        body = {"success": False, **exc.detail}
    else:
        body = {"success": False, "message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(p) for p in err["loc"] if p not in ("body", "query", "path")),
            "msg": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation Error", "errors": errors},
    )


@app.exception_handler(InvalidId)
async def invalid_id(request: Request, exc: InvalidId):
    return JSONResponse(status_code=400, content={"success": False, "message": "Invalid ID format"})


@app.exception_handler(DuplicateKeyError)
async def duplicate_key(request: Request, exc: DuplicateKeyError):
    key_pattern = (exc.details or {}).get("keyPattern") or {}
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Duplicate entry", "field": next(iter(key_pattern), None)},
    )


@app.exception_handler(DatabaseNotConfigured)
async def database_not_configured(request: Request, exc: DatabaseNotConfigured):
    return JSONResponse(status_code=503, content={"success": False, "message": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    body = {"success": False, "message": str(exc) or "Something went wrong!"}
    if config.is_development():
        body["error"] = {"message": str(exc), "type": type(exc).__name__}
    return JSONResponse(status_code=500, content=body)


# --------- Utilities ---------

def generate_registration_no() -> str:
    """CCM + year + last five digits of the epoch millis, e.g. CCM202604211."""
    now = datetime.now()
    millis = str(int(time.time() * 1000))
    return f"{config.REGISTRATION_PREFIX}{now.year}{millis[-5:]}"


def parse_status(status_enum, value: Optional[str]) -> str:
    try:
        return status_enum(value).value
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid status value")


def list_filter(search_fields, status=None, course=None, search=None) -> dict:
    filt = {}
    if status and status != "all":
        filt["status"] = status
    if course and course != "all":
        filt["course"] = course
    if search:
        filt.update(search_filter(search_fields, search))
    return filt


# --------- Admin Session ---------

@app.post("/api/admin/login")
async def admin_login(req: LoginRequest):
    if not req.username or not req.password:
        raise HTTPException(status_code=400, detail="Please provide username and password")
    identity = admins.authenticate(req.username, req.password)
    if identity is None:
        logger.warning(f"Failed admin login for '{req.username}'")
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {
        "success": True,
        "message": "Login successful",
        "token": create_access_token(identity),
        "admin": identity.model_dump(),
    }


@app.get("/api/admin/verify")
async def admin_verify(admin: AdminIdentity = Depends(require_admin)):
    return {"success": True, "admin": admin.model_dump()}


# --------- Dashboard ---------

@app.get("/api/admin/dashboard/stats")
async def dashboard_stats(admin: AdminIdentity = Depends(require_admin)):
    seven_days_ago = datetime.utcnow() - timedelta(days=7)
    return {
        "success": True,
        "stats": {
            "students": {
                "total": count_documents("student"),
                "pending": count_documents("student", {"status": StudentStatus.PENDING.value}),
                "approved": count_documents("student", {"status": StudentStatus.APPROVED.value}),
                "rejected": count_documents("student", {"status": StudentStatus.REJECTED.value}),
                "recent": count_documents("student", {"createdAt": {"$gte": seven_days_ago}}),
            },
            "messages": {
                "total": count_documents("contact"),
                "new": count_documents("contact", {"status": MessageStatus.NEW.value}),
                "inProgress": count_documents("contact", {"status": MessageStatus.IN_PROGRESS.value}),
                "resolved": count_documents("contact", {"status": MessageStatus.RESOLVED.value}),
            },
        },
    }


# --------- Admin: Students ---------

@app.get("/api/admin/students")
async def admin_list_students(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    status: Optional[str] = None,
    course: Optional[str] = None,
    search: Optional[str] = None,
    admin: AdminIdentity = Depends(require_admin),
):
    filt = list_filter(STUDENT_SEARCH_FIELDS, status=status, course=course, search=search)
    docs, total = paginate("student", filt, page, limit)
    return {
        "success": True,
        "students": [serialize_doc(d) for d in docs],
        "totalPages": math.ceil(total / limit),
        "currentPage": page,
        "totalStudents": total,
    }


@app.get("/api/admin/students/{student_id}")
async def admin_get_student(student_id: str, admin: AdminIdentity = Depends(require_admin)):
    student = get_document("student", student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return {"success": True, "student": serialize_doc(student)}


@app.patch("/api/admin/students/{student_id}/status")
async def admin_update_student_status(
    student_id: str, req: StatusUpdate, admin: AdminIdentity = Depends(require_admin)
):
    status = parse_status(StudentStatus, req.status)
    student = set_status("student", student_id, status)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    logger.info(f"{admin.username} set student {student_id} to {status}")
    return {
        "success": True,
        "message": "Student status updated successfully",
        "student": serialize_doc(student),
    }


@app.delete("/api/admin/students/{student_id}")
async def admin_delete_student(student_id: str, admin: AdminIdentity = Depends(require_admin)):
    if not delete_document("student", student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    logger.info(f"{admin.username} deleted student {student_id}")
    return {"success": True, "message": "Student deleted successfully"}


# --------- Admin: Messages ---------

@app.get("/api/admin/messages")
async def admin_list_messages(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    status: Optional[str] = None,
    search: Optional[str] = None,
    admin: AdminIdentity = Depends(require_admin),
):
    filt = list_filter(MESSAGE_SEARCH_FIELDS, status=status, search=search)
    docs, total = paginate("contact", filt, page, limit)
    return {
        "success": True,
        "messages": [serialize_doc(d) for d in docs],
        "totalPages": math.ceil(total / limit),
        "currentPage": page,
        "totalMessages": total,
    }


@app.get("/api/admin/messages/{message_id}")
async def admin_get_message(message_id: str, admin: AdminIdentity = Depends(require_admin)):
    message = get_document("contact", message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    # existing dashboard reads the document from the "message" key
    return {"success": True, "message": serialize_doc(message)}


@app.patch("/api/admin/messages/{message_id}/status")
async def admin_update_message_status(
    message_id: str, req: StatusUpdate, admin: AdminIdentity = Depends(require_admin)
):
    status = parse_status(MessageStatus, req.status)
    message = set_status("contact", message_id, status)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return {
        "success": True,
        "message": "Message status updated successfully",
        "data": serialize_doc(message),
    }


@app.delete("/api/admin/messages/{message_id}")
async def admin_delete_message(message_id: str, admin: AdminIdentity = Depends(require_admin)):
    if not delete_document("contact", message_id):
        raise HTTPException(status_code=404, detail="Message not found")
    return {"success": True, "message": "Message deleted successfully"}


# --------- Students ---------

@app.post("/api/students/register", status_code=201)
async def register_student(request: Request, storage: Optional[ImageStorage] = Depends(get_storage)):
    async with request.form() as form:
        fields = {k: v for k, v in form.items() if isinstance(v, str)}
        files = {}
        for name in IMAGE_FIELDS:
            upload = form.get(name)
            if isinstance(upload, UploadFile) and upload.filename:
                files[name] = upload

        try:
            registration = StudentRegistration.model_validate(fields)
        except ValidationError as e:
            raise RequestValidationError(e.errors())

        try:
            for name, upload in files.items():
                image_extension(name, upload)
        except InvalidImage as e:
            raise HTTPException(status_code=400, detail=str(e))

        if files and storage is None:
            raise HTTPException(status_code=503, detail="File storage not configured")

        urls = {}
        try:
            for name, upload in files.items():
                # boto3 blocks, keep it off the event loop
                urls[name] = await run_in_threadpool(storage.upload_image, name, upload)
        except (BotoCoreError, ClientError) as e:
            logger.exception("Image upload failed during registration")
            raise HTTPException(status_code=500, detail={"message": "Registration failed", "error": str(e)})

    student = Student(
        **registration.model_dump(),
        registration_no=generate_registration_no(),
        full_name=registration.student_name,
        documents=StudentDocuments(**urls),
    )
    try:
        new_id = create_document("student", student)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email or Aadhar already registered")
    except PyMongoError as e:
        logger.exception("Student registration failed")
        raise HTTPException(status_code=500, detail={"message": "Registration failed", "error": str(e)})

    logger.info(f"Registered student {student.registration_no} for {student.course}")
    return {
        "success": True,
        "message": "Registration successful! We will contact you soon.",
        "data": serialize_doc(get_document("student", new_id)),
    }


@app.get("/api/students")
async def list_students():
    docs = get_documents("student", newest_first=True)
    return {"success": True, "count": len(docs), "data": [serialize_doc(d) for d in docs]}


@app.get("/api/students/{student_id}")
async def get_student(student_id: str):
    student = get_document("student", student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return {"success": True, "data": serialize_doc(student)}


# TODO: confirm with the admissions office whether this unauthenticated
# twin of PATCH /api/admin/students/{id}/status can be retired.
@app.patch("/api/students/{student_id}/status")
async def update_student_status(student_id: str, req: StatusUpdate):
    status = parse_status(StudentStatus, req.status)
    student = set_status("student", student_id, status)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return {"success": True, "message": "Status updated successfully", "data": serialize_doc(student)}


# --------- Contact ---------

@app.post("/api/contact/submit", status_code=201)
async def submit_contact(submission: ContactSubmission):
    create_document("contact", Contact(**submission.model_dump()))
    logger.info(f"Contact message received: {submission.subject}")
    return {"success": True, "message": "Message sent successfully! We will contact you soon."}


@app.get("/api/contact")
async def list_messages():
    docs = get_documents("contact", newest_first=True)
    return {"success": True, "count": len(docs), "data": [serialize_doc(d) for d in docs]}


# --------- Courses ---------

@app.get("/api/courses")
async def list_courses():
    docs = get_documents("course", {"isActive": True})
    return {"success": True, "count": len(docs), "data": [serialize_doc(d) for d in docs]}


@app.get("/api/courses/{code}")
async def get_course(code: str):
    course = find_one("course", {"code": code, "isActive": True})
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return {"success": True, "data": serialize_doc(course)}


@app.post("/api/courses/seed")
async def seed_courses():
    count = replace_all("course", COURSES)
    logger.warning(f"Course catalog reseeded with {count} entries")
    return {"success": True, "message": "Courses seeded successfully", "count": count}


# --------- Health ---------

@app.get("/")
def read_root():
    return {
        "success": True,
        "message": "City College API",
        "version": "2.0",
        "endpoints": {
            "students": "/api/students",
            "registration": "/api/students/register",
            "contact": "/api/contact",
            "courses": "/api/courses",
            "admin": "/api/admin",
        },
        "status": "Server is running",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
def health():
    return {
        "success": True,
        "status": "healthy",
        "database": "connected" if database.ping() else "disconnected",
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "timestamp": datetime.utcnow().isoformat(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
