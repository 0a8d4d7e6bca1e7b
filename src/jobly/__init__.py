"""
Jobly: job board REST API (FastAPI + PostgreSQL).

Modules:
- sql: partial-update SET fragments
- query: search filter WHERE fragments
- db: PostgreSQL connection pooling + query helpers
- auth_utils: password hashing and JWT auth helpers
- schemas: Pydantic models for the REST API
- errors: application errors and their HTTP handlers
- config / logging_config: environment settings and log setup
"""
