import logging
from typing import Any, Dict, List, Type, TypeVar

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from jobly import config, db
from jobly.auth_utils import (
    create_token,
    ensure_admin,
    ensure_correct_user_or_admin,
    ensure_logged_in,
    hash_password,
    verify_password,
)
from jobly.errors import BadRequestError, NotFoundError, UnauthorizedError, register_error_handlers
from jobly.logging_config import setup_logging
from jobly.query import COMPANY_FILTERS, JOB_FILTERS, sql_for_filters
from jobly.schemas import (
    COMPANY_UPDATE_FIELDS,
    JOB_UPDATE_FIELDS,
    USER_SELF_UPDATE_FIELDS,
    USER_UPDATE_FIELDS,
    AppliedResponse,
    CompanyDetailResponse,
    CompanyFilter,
    CompanyListResponse,
    CompanyNew,
    CompanyResponse,
    CompanyUpdate,
    DeletedResponse,
    JobDetailResponse,
    JobFilter,
    JobListResponse,
    JobNew,
    JobResponse,
    JobUpdate,
    RegisterRequest,
    TokenRequest,
    TokenResponse,
    UserDetailResponse,
    UserListResponse,
    UserNew,
    UserResponse,
    UserTokenResponse,
    UserUpdate,
)
from jobly.sql import sql_for_partial_update

setup_logging(config.log_level(), config.log_json())
logger = logging.getLogger(__name__)

F = TypeVar("F", bound=BaseModel)

openapi_tags = [
    {"name": "Health", "description": "Service health checks."},
    {"name": "Auth", "description": "Token issuance and self-registration."},
    {"name": "Companies", "description": "Companies and their search filters."},
    {"name": "Jobs", "description": "Job postings and their search filters."},
    {"name": "Users", "description": "User accounts and job applications."},
]

app = FastAPI(
    title="Jobly API",
    description=(
        "Job board backend: companies, jobs, users and applications.\n\n"
        "Auth: Use the `Authorization: Bearer <token>` header for protected routes."
    ),
    version="1.0.0",
    openapi_tags=openapi_tags,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# JSON field -> column for partial updates; anything missing keeps its name.
COMPANY_JS_TO_SQL = {"numEmployees": "num_employees", "logoUrl": "logo_url"}
USER_JS_TO_SQL = {"firstName": "first_name", "lastName": "last_name", "isAdmin": "is_admin"}

COMPANY_COLUMNS = 'handle, name, description, num_employees AS "numEmployees", logo_url AS "logoUrl"'

JOB_COLUMNS = 'id, title, salary, equity, company_handle AS "companyHandle"'

USER_COLUMNS = 'username, first_name AS "firstName", last_name AS "lastName", email, is_admin AS "isAdmin"'


def _parse_filters(model: Type[F], request: Request) -> List[Any]:
    """
    Validate the query string against ``model`` and return (key, value) pairs
    in the order the client sent them. Unknown keys are dropped.
    """
    try:
        filters = model.model_validate(dict(request.query_params))
    except ValidationError as err:
        raise BadRequestError("; ".join(e["msg"] for e in err.errors()))

    data = filters.model_dump(by_alias=True, exclude_none=True)
    return [(key, data[key]) for key in request.query_params.keys() if key in data]


def _where(predicates: List[str]) -> str:
    predicates = [p for p in predicates if p]
    return ("WHERE " + " AND ".join(predicates)) if predicates else ""


def _applied_job_ids(username: str) -> List[int]:
    rows = db.fetch_all("SELECT job_id FROM applications WHERE username = $1 ORDER BY job_id", [username])
    return [r["job_id"] for r in rows]


@app.on_event("startup")
def _startup() -> None:
    db.init_db_pool()


@app.on_event("shutdown")
def _shutdown() -> None:
    db.close_db_pool()


@app.get("/", tags=["Health"], summary="Health check")
def health_check() -> Dict[str, str]:
    """Health check endpoint used by the frontend to verify backend availability."""
    return {"message": "Healthy"}


# =========================
# Auth
# =========================

@app.post("/auth/token", response_model=TokenResponse, tags=["Auth"], summary="Get token")
def get_token(payload: TokenRequest) -> Dict[str, str]:
    """Authenticate with username/password and return a JWT."""
    user = db.fetch_one(
        "SELECT username, password, is_admin FROM users WHERE username = $1",
        [payload.username],
    )
    if not user or not verify_password(payload.password, user["password"]):
        raise UnauthorizedError("Invalid username/password")

    logger.info("Issued token", extra={"username": user["username"]})
    return {"token": create_token(user["username"], user["is_admin"])}


@app.post(
    "/auth/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Auth"],
    summary="Register",
)
def register(payload: RegisterRequest) -> Dict[str, str]:
    """Register a (non-admin) user and return a JWT."""
    user = _insert_user(payload, is_admin=False)
    return {"token": create_token(user["username"], user["isAdmin"])}


@app.get("/auth/me", response_model=UserDetailResponse, tags=["Auth"], summary="Current user")
def get_me(current: Dict[str, Any] = Depends(ensure_logged_in)) -> Dict[str, Any]:
    """Return the user the token belongs to, with their applied job ids."""
    username = current["username"]
    user = db.fetch_one(f"SELECT {USER_COLUMNS} FROM users WHERE username = $1", [username])
    if not user:
        raise NotFoundError(f"No user: {username}")

    user["jobs"] = _applied_job_ids(username)
    return {"user": user}


# =========================
# Companies
# =========================

@app.post(
    "/companies",
    response_model=CompanyResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Companies"],
    summary="Create company",
)
def create_company(payload: CompanyNew, _: Dict[str, Any] = Depends(ensure_admin)) -> Dict[str, Any]:
    """Admin: create a company."""
    duplicate = db.fetch_one("SELECT handle FROM companies WHERE handle = $1", [payload.handle])
    if duplicate:
        raise BadRequestError(f"Duplicate company: {payload.handle}")

    company = db.execute_returning_one(
        f"""
        INSERT INTO companies (handle, name, description, num_employees, logo_url)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING {COMPANY_COLUMNS}
        """,
        [payload.handle, payload.name, payload.description, payload.num_employees, payload.logo_url],
    )
    return {"company": company}


@app.get("/companies", response_model=CompanyListResponse, tags=["Companies"], summary="List companies")
def list_companies(request: Request) -> Dict[str, Any]:
    """
    List companies, optionally filtered by:

    - name: case-insensitive partial match
    - minEmployees / maxEmployees: inclusive bounds on headcount
    """
    criteria = _parse_filters(CompanyFilter, request)
    where, params = sql_for_filters(criteria, COMPANY_FILTERS)

    companies = db.fetch_all(
        f"""
        SELECT {COMPANY_COLUMNS}
        FROM companies
        {_where([where])}
        ORDER BY name
        """,
        params,
    )
    return {"companies": companies}


@app.get("/companies/{handle}", response_model=CompanyDetailResponse, tags=["Companies"], summary="Get company")
def get_company(handle: str) -> Dict[str, Any]:
    """Get a company with its jobs."""
    company = db.fetch_one(f"SELECT {COMPANY_COLUMNS} FROM companies WHERE handle = $1", [handle])
    if not company:
        raise NotFoundError(f"No company: {handle}")

    company["jobs"] = db.fetch_all(
        "SELECT id, title, salary, equity FROM jobs WHERE company_handle = $1 ORDER BY id",
        [handle],
    )
    return {"company": company}


@app.patch("/companies/{handle}", response_model=CompanyResponse, tags=["Companies"], summary="Update company")
def update_company(
    handle: str,
    payload: CompanyUpdate,
    _: Dict[str, Any] = Depends(ensure_admin),
) -> Dict[str, Any]:
    """Admin: partially update a company. The handle cannot change."""
    set_cols, values = sql_for_partial_update(
        payload.model_dump(by_alias=True, exclude_unset=True),
        COMPANY_JS_TO_SQL,
        allowed=COMPANY_UPDATE_FIELDS,
    )
    handle_idx = len(values) + 1

    company = db.execute_returning(
        f"""
        UPDATE companies
        SET {set_cols}
        WHERE handle = ${handle_idx}
        RETURNING {COMPANY_COLUMNS}
        """,
        [*values, handle],
    )
    if not company:
        raise NotFoundError(f"No company: {handle}")
    return {"company": company}


@app.delete("/companies/{handle}", response_model=DeletedResponse, tags=["Companies"], summary="Delete company")
def delete_company(handle: str, _: Dict[str, Any] = Depends(ensure_admin)) -> Dict[str, str]:
    """Admin: delete a company (its jobs go with it)."""
    company = db.execute_returning("DELETE FROM companies WHERE handle = $1 RETURNING handle", [handle])
    if not company:
        raise NotFoundError(f"No company: {handle}")
    return {"deleted": handle}


# =========================
# Jobs
# =========================

@app.post(
    "/jobs",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Jobs"],
    summary="Create job",
)
def create_job(payload: JobNew, _: Dict[str, Any] = Depends(ensure_admin)) -> Dict[str, Any]:
    """Admin: create a job for an existing company."""
    company = db.fetch_one("SELECT handle FROM companies WHERE handle = $1", [payload.company_handle])
    if not company:
        raise BadRequestError(f"No company: {payload.company_handle}")

    job = db.execute_returning_one(
        f"""
        INSERT INTO jobs (title, salary, equity, company_handle)
        VALUES ($1, $2, $3, $4)
        RETURNING {JOB_COLUMNS}
        """,
        [payload.title, payload.salary, payload.equity, payload.company_handle],
    )
    return {"job": job}


@app.get("/jobs", response_model=JobListResponse, tags=["Jobs"], summary="List jobs")
def list_jobs(request: Request) -> Dict[str, Any]:
    """
    List jobs, optionally filtered by:

    - title: case-insensitive partial match
    - minSalary / maxSalary: inclusive bounds on salary
    - hasEquity: if true, only jobs with non-zero equity
    """
    criteria = _parse_filters(JobFilter, request)
    where, params = sql_for_filters(criteria, JOB_FILTERS)
    has_equity = dict(criteria).get("hasEquity") is True

    jobs = db.fetch_all(
        f"""
        SELECT {JOB_COLUMNS}
        FROM jobs
        {_where([where, "equity > 0" if has_equity else ""])}
        ORDER BY title, id
        """,
        params,
    )
    return {"jobs": jobs}


@app.get("/jobs/{job_id}", response_model=JobDetailResponse, tags=["Jobs"], summary="Get job")
def get_job(job_id: int) -> Dict[str, Any]:
    """Get a job with its company."""
    job = db.fetch_one(
        "SELECT id, title, salary, equity, company_handle FROM jobs WHERE id = $1",
        [job_id],
    )
    if not job:
        raise NotFoundError(f"No job: {job_id}")

    job["company"] = db.fetch_one(
        f"SELECT {COMPANY_COLUMNS} FROM companies WHERE handle = $1",
        [job.pop("company_handle")],
    )
    return {"job": job}


@app.patch("/jobs/{job_id}", response_model=JobResponse, tags=["Jobs"], summary="Update job")
def update_job(job_id: int, payload: JobUpdate, _: Dict[str, Any] = Depends(ensure_admin)) -> Dict[str, Any]:
    """Admin: partially update a job. The id and company cannot change."""
    set_cols, values = sql_for_partial_update(
        payload.model_dump(by_alias=True, exclude_unset=True),
        allowed=JOB_UPDATE_FIELDS,
    )
    id_idx = len(values) + 1

    job = db.execute_returning(
        f"""
        UPDATE jobs
        SET {set_cols}
        WHERE id = ${id_idx}
        RETURNING {JOB_COLUMNS}
        """,
        [*values, job_id],
    )
    if not job:
        raise NotFoundError(f"No job: {job_id}")
    return {"job": job}


@app.delete("/jobs/{job_id}", response_model=DeletedResponse, tags=["Jobs"], summary="Delete job")
def delete_job(job_id: int, _: Dict[str, Any] = Depends(ensure_admin)) -> Dict[str, str]:
    """Admin: delete a job."""
    job = db.execute_returning("DELETE FROM jobs WHERE id = $1 RETURNING id", [job_id])
    if not job:
        raise NotFoundError(f"No job: {job_id}")
    return {"deleted": str(job_id)}


# =========================
# Users
# =========================

def _insert_user(payload: RegisterRequest, is_admin: bool) -> Dict[str, Any]:
    duplicate = db.fetch_one("SELECT username FROM users WHERE username = $1", [payload.username])
    if duplicate:
        raise BadRequestError(f"Duplicate username: {payload.username}")

    user = db.execute_returning_one(
        f"""
        INSERT INTO users (username, password, first_name, last_name, email, is_admin)
        VALUES ($1, $2, $3, $4, $5, $6)
        RETURNING {USER_COLUMNS}
        """,
        [
            payload.username,
            hash_password(payload.password),
            payload.first_name,
            payload.last_name,
            payload.email,
            is_admin,
        ],
    )
    logger.info("Registered user", extra={"username": user["username"], "is_admin": is_admin})
    return user


@app.post(
    "/users",
    response_model=UserTokenResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
    summary="Create user",
)
def create_user(payload: UserNew, _: Dict[str, Any] = Depends(ensure_admin)) -> Dict[str, Any]:
    """Admin: create a user, possibly another admin, and return it with a token."""
    user = _insert_user(payload, is_admin=payload.is_admin)
    return {"user": user, "token": create_token(user["username"], user["isAdmin"])}


@app.get("/users", response_model=UserListResponse, tags=["Users"], summary="List users")
def list_users(_: Dict[str, Any] = Depends(ensure_admin)) -> Dict[str, Any]:
    """Admin: list users with the ids of the jobs each applied to."""
    users = db.fetch_all(f"SELECT {USER_COLUMNS} FROM users ORDER BY username")
    applications = db.fetch_all("SELECT username, job_id FROM applications ORDER BY job_id")

    jobs_by_user: Dict[str, List[int]] = {}
    for a in applications:
        jobs_by_user.setdefault(a["username"], []).append(a["job_id"])
    for u in users:
        u["jobs"] = jobs_by_user.get(u["username"], [])
    return {"users": users}


@app.get("/users/{username}", response_model=UserDetailResponse, tags=["Users"], summary="Get user")
def get_user(username: str, _: Dict[str, Any] = Depends(ensure_correct_user_or_admin)) -> Dict[str, Any]:
    """Get a user with the ids of the jobs they applied to. Self or admin."""
    user = db.fetch_one(f"SELECT {USER_COLUMNS} FROM users WHERE username = $1", [username])
    if not user:
        raise NotFoundError(f"No user: {username}")

    user["jobs"] = _applied_job_ids(username)
    return {"user": user}


@app.patch("/users/{username}", response_model=UserResponse, tags=["Users"], summary="Update user")
def update_user(
    username: str,
    payload: UserUpdate,
    current: Dict[str, Any] = Depends(ensure_correct_user_or_admin),
) -> Dict[str, Any]:
    """
    Partially update a user. Self or admin.

    Only admins may change ``isAdmin``; a new password is hashed before it is stored.
    """
    data = payload.model_dump(by_alias=True, exclude_unset=True)
    if "password" in data:
        data["password"] = hash_password(data["password"])

    allowed = USER_UPDATE_FIELDS if current.get("isAdmin") else USER_SELF_UPDATE_FIELDS
    set_cols, values = sql_for_partial_update(data, USER_JS_TO_SQL, allowed=allowed)
    username_idx = len(values) + 1

    user = db.execute_returning(
        f"""
        UPDATE users
        SET {set_cols}
        WHERE username = ${username_idx}
        RETURNING {USER_COLUMNS}
        """,
        [*values, username],
    )
    if not user:
        raise NotFoundError(f"No user: {username}")
    return {"user": user}


@app.delete("/users/{username}", response_model=DeletedResponse, tags=["Users"], summary="Delete user")
def delete_user(username: str, _: Dict[str, Any] = Depends(ensure_correct_user_or_admin)) -> Dict[str, str]:
    """Delete a user. Self or admin."""
    user = db.execute_returning("DELETE FROM users WHERE username = $1 RETURNING username", [username])
    if not user:
        raise NotFoundError(f"No user: {username}")
    return {"deleted": username}


@app.post("/users/{username}/jobs/{job_id}", response_model=AppliedResponse, tags=["Users"], summary="Apply for job")
def apply_for_job(
    username: str,
    job_id: int,
    _: Dict[str, Any] = Depends(ensure_correct_user_or_admin),
) -> Dict[str, int]:
    """Record an application of ``username`` to ``job_id``. Self or admin."""
    if not db.fetch_one("SELECT username FROM users WHERE username = $1", [username]):
        raise NotFoundError(f"No user: {username}")
    if not db.fetch_one("SELECT id FROM jobs WHERE id = $1", [job_id]):
        raise NotFoundError(f"No job: {job_id}")

    existing = db.fetch_one(
        "SELECT job_id FROM applications WHERE username = $1 AND job_id = $2",
        [username, job_id],
    )
    if existing:
        raise BadRequestError(f"Duplicate application: {username}/{job_id}")

    db.execute("INSERT INTO applications (username, job_id) VALUES ($1, $2)", [username, job_id])
    return {"applied": job_id}
