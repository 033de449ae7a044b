import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Dict, Any
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Cookie
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pymongo import ReturnDocument
from pymongo.collection import Collection
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import load_settings
from database import db
from schemas import AskIn, CommentIn, LoginIn, ProjectIn, ProjectStatus, ResetPasswordIn, WorkIn, WorkType

logger = logging.getLogger(__name__)

SESSION_DAYS = 15

app = FastAPI(title="Codeabode – development platform API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------
# Utility functions
# -----------------

def collection(name: str) -> Collection:
    """Every route reads and writes through here, never through `db` directly."""
    return db[name]


def now() -> datetime:
    # BSON dates are naive UTC with millisecond precision
    t = datetime.now(timezone.utc).replace(tzinfo=None)
    return t.replace(microsecond=t.microsecond // 1000 * 1000)


def next_id(name: str) -> int:
    """Platform records carry small integer ids; one counter document per collection."""
    counter = collection("counter").find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return counter["seq"]


def insert(name: str, doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = {"id": next_id(name), **doc}
    collection(name).insert_one(doc)
    return doc


def digest(password: str) -> str:
    return hashlib.sha512(password.encode("utf-8")).hexdigest()


def create_account(username: str, name: str, password: str) -> Dict[str, Any]:
    """Register a login. `name` is the display name that ends up in the name cookie."""
    if collection("account").find_one({"username": username}):
        raise ValueError(f"Account {username!r} already exists")
    return insert("account", {"username": username, "name": name, "password": digest(password)})


def add_student(account_ids: List[int], classes: Optional[List[Dict[str, Any]]] = None, **fields: Any) -> Dict[str, Any]:
    student = insert("student", {
        "account_ids": list(account_ids),
        "notes": None,
        "future_concepts": [],
        "current_class": None,
        **fields,
    })
    docs = [
        {
            "student_id": student["id"],
            "class_id": c.get("class_id") or next_id("student_class"),
            "status": "upcoming",
            "methods": [],
            "stretch_methods": None,
            "skills_tested": None,
            "description": None,
            "classwork": None,
            "notes": None,
            "hw": None,
            "hw_notes": None,
            "classwork_submission": None,
            "homework_submission": None,
            **c,
        }
        for c in classes or []
    ]
    if docs:
        collection("student_class").insert_many(docs)
    return student


def account_for_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    row = collection("token").find_one({"token": token, "expires_at": {"$gt": now()}})
    if row is None:
        return None
    return collection("account").find_one({"id": row["user_id"]})


def expire_tokens(account_id: int) -> int:
    at = now()
    res = collection("token").update_many(
        {"user_id": account_id, "expires_at": {"$gt": at}},
        {"$set": {"expires_at": at}},
    )
    return res.modified_count


def require_account(token: Optional[str]) -> Dict[str, Any]:
    account = account_for_token(token)
    if account is None:
        raise HTTPException(status_code=401, detail="No valid session")
    return account


def owned_class(account: Dict[str, Any], class_id: int):
    """Find (student, class) for a class belonging to one of the account's students."""
    for c in collection("student_class").find({"class_id": class_id}):
        student = collection("student").find_one({"id": c["student_id"], "account_ids": account["id"]})
        if student:
            return student, c
    raise HTTPException(status_code=404, detail="Class not found")


def set_session_cookies(response: PlainTextResponse, name: str, token: str) -> None:
    max_age = int(timedelta(days=SESSION_DAYS).total_seconds())
    # the name cookie is script-readable; the token never is
    response.set_cookie("name", quote(name, safe=""), max_age=max_age, path="/", samesite="strict")
    response.set_cookie("token", token, max_age=max_age, path="/", samesite="strict", httponly=True)


def clear_session_cookies(response: PlainTextResponse) -> None:
    response.delete_cookie("token", path="/", samesite="strict", httponly=True)
    response.delete_cookie("name", path="/", samesite="strict")


def seed_data():
    """Seed demo accounts, students, forum threads and projects if not already present"""
    if collection("account").count_documents({}) > 0:
        return

    ada = create_account("ada", "Ada Lovelace", "analytical")
    grace = create_account("grace", "Grace Hopper", "cobol")

    alan = add_student(
        [ada["id"]],
        name="Alan",
        age=12,
        current_level="Python: if/else, print()",
        final_goal="RPG civilization shooter",
        future_concepts=["lists", "functions", "classes", "pygame sprites"],
        notes="Prefers building games to worksheets.",
        current_class=103,
        classes=[
            {"class_id": 101, "status": "completed", "name": "Variables",
             "methods": ["int", "str", "print", "input"],
             "classwork": "## Variables\nStore your hero's name and health.",
             "hw": "Print a character sheet.", "classwork_submission": "name = 'Zed'\nhp = 10"},
            {"class_id": 102, "status": "Done", "name": "Conditionals",
             "methods": ["if", "elif", "else"], "stretch_methods": ["match"],
             "classwork": "Branch on the player's health.", "hw": "Write a door puzzle."},
            {"class_id": 103, "status": "upcoming", "name": "Loops",
             "methods": ["for", "while", "range"],
             "classwork": "Make an enemy wave with a loop.", "hw": "Count down to launch."},
            {"class_id": 104, "status": "assessment", "name": "Your Dungeon Crawler",
             "skills_tested": ["loops", "conditionals"],
             "description": "Walk a hero through three rooms."},
        ],
    )
    add_student(
        [ada["id"], grace["id"]],
        name="Barbara",
        age=14,
        current_level="Scratch",
        final_goal="Chat bot",
    )

    question = insert("question", {
        "account_id": ada["id"],
        "class_id": 101,
        "work_type": WorkType.CLASSWORK.value,
        "student_name": alan["name"],
        "error": "NameError: name 'hp' is not defined",
        "interpretation": "I think hp has not been made yet.",
        "question": "Why can't Python find my variable?",
        "work": "print(hp)\nhp = 10",
        "created_at": now() - timedelta(days=1),
    })
    insert("comment", {
        "question_id": question["id"],
        "account_id": grace["id"],
        "comment": "Assign hp before you print it.",
        "created_at": now() - timedelta(hours=20),
    })

    insert("project", {
        "account_id": ada["id"],
        "class_id": 101,
        "work_type": WorkType.CLASSWORK.value,
        "deploy_method": "pygbag",
        "title": "Zed's Quest",
        "description": "A tiny text adventure.",
        "views": 3,
        "status": ProjectStatus.READY.value,
        "created_at": now() - timedelta(days=2),
        "url": "/play/1/index.html",
    })
    insert("project", {
        "account_id": ada["id"],
        "class_id": 102,
        "work_type": WorkType.HOMEWORK.value,
        "deploy_method": "pygbag",
        "title": "Door Puzzle",
        "description": "Guess the password to open the door.",
        "views": 0,
        "status": ProjectStatus.BUILDING.value,
        "created_at": now() - timedelta(hours=1),
        "url": None,
    })


@app.on_event("startup")
async def on_startup():
    seed_data()


# -----------------
# Plain-text errors
# -----------------

@app.exception_handler(StarletteHTTPException)
async def http_error(request, exc: StarletteHTTPException):
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error(request, exc: RequestValidationError):
    return PlainTextResponse(str(exc), status_code=400)


# -----------------
# Basic routes
# -----------------

@app.get("/")
def read_root():
    return {"message": "Codeabode API Running"}


@app.get("/test")
def test_database():
    settings = load_settings()
    return {
        "backend": "✅ Running",
        "database": "✅ MongoDB" if settings.database_url else "✅ In-memory",
        "database_url": "✅ Set" if settings.database_url else "❌ Not Set",
        "database_name": db.name,
        "collections": sorted(db.list_collection_names())[:10],
    }


# -----------------
# Accounts
# -----------------

@app.post("/api/login")
def login(body: LoginIn):
    account = collection("account").find_one({"username": body.username, "password": digest(body.password)})
    if not account:
        raise HTTPException(status_code=401, detail="Incorrect password")
    token = uuid.uuid4().hex
    collection("token").insert_one({
        "token": token,
        "user_id": account["id"],
        "expires_at": now() + timedelta(days=SESSION_DAYS),
    })
    response = PlainTextResponse("Login successful")
    set_session_cookies(response, account["name"], token)
    logger.info("Login for %s", body.username)
    return response


@app.post("/api/reset-password")
def reset_password(body: ResetPasswordIn):
    accounts = collection("account")
    account = accounts.find_one({"username": body.username, "password": digest(body.password)})
    if not account:
        response = PlainTextResponse("Incorrect password", status_code=401)
    else:
        accounts.update_one({"id": account["id"]}, {"$set": {"password": digest(body.new_password)}})
        cleared = expire_tokens(account["id"])
        response = PlainTextResponse(f"Password reset successfully: {cleared} tokens cleared")
    clear_session_cookies(response)
    return response


# -----------------
# Students and work
# -----------------

def student_payload(student: Dict[str, Any]) -> Dict[str, Any]:
    classes = collection("student_class").find({"student_id": student["id"]}, {"_id": 0, "student_id": 0})
    payload = {k: v for k, v in student.items() if k not in ("_id", "account_ids")}
    payload["classes"] = list(classes.sort("class_id", -1))
    return payload


@app.post("/api/list_students")
def list_students(token: Optional[str] = Cookie(None)):
    account = account_for_token(token)
    if account is None:
        response = PlainTextResponse("Invalid token", status_code=401)
        clear_session_cookies(response)
        return response
    students = collection("student").find({"account_ids": account["id"]}, {"_id": 0, "id": 1, "name": 1})
    return list(students.sort("id", 1))


@app.post("/api/get_student/{student_id}")
def get_student(student_id: int, token: Optional[str] = Cookie(None)):
    account = account_for_token(token)
    # missing session and foreign student look the same from outside
    student = account and collection("student").find_one({"id": student_id, "account_ids": account["id"]})
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student_payload(student)


@app.post("/api/submit/{work_type}")
def submit_work(work_type: WorkType, body: WorkIn, token: Optional[str] = Cookie(None)):
    account = require_account(token)
    _, c = owned_class(account, body.class_id)
    collection("student_class").update_one(
        {"_id": c["_id"]},
        {"$set": {f"{work_type.value}_submission": body.work}},
    )
    return PlainTextResponse("Submitted")


# -----------------
# Forum
# -----------------

def account_name(account_id: int) -> Optional[str]:
    account = collection("account").find_one({"id": account_id})
    return account["name"] if account else None


def question_payload(q: Dict[str, Any]) -> Dict[str, Any]:
    comments = collection("comment").find({"question_id": q["id"]}).sort("created_at", 1)
    return {
        "id": q["id"],
        "student_name": q["student_name"],
        "error": q.get("error") or None,
        "interpretation": q.get("interpretation") or None,
        "question": q["question"],
        "work": q.get("work"),
        "created_at": q["created_at"],
        "comments": [
            {
                "id": c["id"],
                "account_name": account_name(c["account_id"]),
                "comment": c["comment"],
                "created_at": c["created_at"],
            }
            for c in comments
        ],
    }


@app.get("/api/get_questions")
def get_questions(token: Optional[str] = Cookie(None)):
    require_account(token)
    questions = collection("question").find({}).sort("created_at", -1)
    return [question_payload(q) for q in questions]


@app.post("/api/ask", status_code=201)
def ask(body: AskIn, token: Optional[str] = Cookie(None)):
    account = require_account(token)
    if not body.question.strip():
        raise HTTPException(status_code=400, detail="Question is required")
    student, c = owned_class(account, body.class_id)
    q = insert("question", {
        "account_id": account["id"],
        "class_id": body.class_id,
        "work_type": body.work_type.value,
        "student_name": student["name"],
        "error": body.error,
        "interpretation": body.interpretation,
        "question": body.question,
        "work": c.get(f"{body.work_type.value}_submission"),
        "created_at": now(),
    })
    return {"id": q["id"]}


@app.post("/api/comment")
def comment(body: CommentIn, token: Optional[str] = Cookie(None)):
    account = require_account(token)
    if not body.comment.strip():
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    if not collection("question").find_one({"id": body.question_id}):
        raise HTTPException(status_code=404, detail="Question not found")
    c = insert("comment", {
        "question_id": body.question_id,
        "account_id": account["id"],
        "comment": body.comment,
        "created_at": now(),
    })
    # only the timestamp goes back; the new id stays server-side
    return PlainTextResponse(c["created_at"].isoformat())


# -----------------
# Projects
# -----------------

def project_payload(p: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": p["id"],
        "title": p["title"],
        "description": p["description"],
        "author_name": account_name(p["account_id"]),
        "views": p["views"],
        "status": p["status"],
        "created_at": p["created_at"],
        "url": p.get("url"),
    }


@app.get("/api/projects")
def list_projects():
    projects = collection("project").find({}).sort("created_at", -1)
    return [project_payload(p) for p in projects]


@app.post("/api/submit_project")
def submit_project(body: ProjectIn, token: Optional[str] = Cookie(None)):
    account = require_account(token)
    owned_class(account, body.class_id)
    p = insert("project", {
        "account_id": account["id"],
        "class_id": body.class_id,
        "work_type": body.work_type.value,
        "deploy_method": body.deploy_method,
        "title": body.title,
        "description": body.description,
        "views": 0,
        "status": ProjectStatus.PENDING.value,
        "created_at": now(),
        "url": None,
    })
    return {"id": p["id"], "status": p["status"]}


@app.post("/api/projects/{project_id}/view")
def record_view(project_id: int):
    p = collection("project").find_one_and_update(
        {"id": project_id},
        {"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not p:
        raise HTTPException(status_code=404, detail="Project not found")
    return PlainTextResponse(str(p["views"]))


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


if __name__ == "__main__":
    import uvicorn
    settings = load_settings()
    setup_logging(settings.log_level)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
