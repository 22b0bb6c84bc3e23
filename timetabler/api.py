"""
HTTP API for the timetable service.

Run with:
    uvicorn --factory timetabler.api:create_app --port 8000
or:
    timetabler serve --data school.json --db timetable.db

Every failure comes back as {"success": false, "error": ..., "recommendation"?: ...}
with the status code of the raised TimetableError. Request bodies that do not
parse are reported the same way with status 400.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import Settings, load_settings
from .data.loader import DataValidationError
from .data.models import EntryInput
from .errors import TimetableError, ValidationError
from .service import TimetableQuery, TimetableService, subject_payload

logger = logging.getLogger(__name__)


class GenerateRequest(BaseModel):
    class_name: Optional[str] = Field(default=None, alias="className")
    overwrite: bool = False

    model_config = {"populate_by_name": True}


class PeriodRequest(BaseModel):
    number: str
    start: str
    end: str

    model_config = {"coerce_numbers_to_str": True}


def ok(data: Any, **extra: Any) -> dict[str, Any]:
    return {"success": True, **extra, "data": data}


def describe_request_errors(exc: RequestValidationError) -> str:
    """Summarize field errors, e.g. 'overwrite: Input should be a valid boolean'."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid request: " + "; ".join(problems)


def create_app(service: Optional[TimetableService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Service to expose; built from settings when omitted
        settings: Used only when no service is given (defaults to load_settings())
    """
    owns_store = service is None
    if service is None:
        service = TimetableService.from_settings(settings or load_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_store:
            service.store.close()
            logger.info("Closed timetable store %s", service.store.database_path)

    app = FastAPI(title="timetabler", description="School timetable generation service", lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(TimetableError)
    async def handle_timetable_error(request: Request, exc: TimetableError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = ValidationError(describe_request_errors(exc))
        return JSONResponse(error.to_dict(), status_code=error.status_code)

    @app.exception_handler(DataValidationError)
    async def handle_data_error(request: Request, exc: DataValidationError) -> JSONResponse:
        return JSONResponse({"success": False, "error": str(exc)}, status_code=422)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"ok": "true"}

    # -------------------------------------------------------------------------
    # Timetable
    # -------------------------------------------------------------------------

    @app.get("/api/timetable")
    def get_timetable(
        class_name: Optional[str] = Query(default=None, alias="class"),
        day: Optional[str] = None,
        teacher: Optional[str] = None,
        view: str = "grid",
    ) -> dict[str, Any]:
        query = TimetableQuery(class_name=class_name, day_of_week=day, teacher_id=teacher, view=view)
        return ok(service.query(query).to_dict())

    @app.post("/api/timetable", status_code=201)
    def create_entry(entry: EntryInput) -> dict[str, Any]:
        created = service.create_entry(entry)
        return ok(created.model_dump(by_alias=True), message="Timetable entry created successfully")

    @app.put("/api/timetable")
    def update_entry(entry: EntryInput, id: Optional[str] = None) -> dict[str, Any]:
        if not id:
            raise ValidationError("Entry id is required")
        updated = service.update_entry(id, entry)
        return ok(updated.model_dump(by_alias=True), message="Timetable entry updated successfully")

    @app.delete("/api/timetable")
    def delete_entry(id: Optional[str] = None) -> dict[str, Any]:
        if not id:
            raise ValidationError("Entry id is required")
        service.delete_entry(id)
        return {"success": True, "message": "Timetable entry deleted successfully"}

    @app.post("/api/timetable/bulk")
    async def bulk_create(request: Request) -> dict[str, Any]:
        try:
            payload = await request.json()
        except ValueError as e:
            raise ValidationError("Invalid JSON body") from e
        items = payload.get("entries") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise ValidationError("Expected a list of entries")
        if not all(isinstance(item, dict) for item in items):
            raise ValidationError("Each entry must be an object")
        return ok(service.bulk_create(items).to_dict())

    @app.post("/api/timetable/generate")
    def generate(body: GenerateRequest) -> dict[str, Any]:
        result = service.generate(body.class_name, overwrite=body.overwrite)
        return ok(result.to_dict(), message=result.message)

    @app.post("/api/timetable/periods", status_code=201)
    def add_period(body: PeriodRequest) -> dict[str, Any]:
        slot = service.add_period(body.number, body.start, body.end)
        return ok({"number": body.number.strip(), **slot.model_dump()})

    # -------------------------------------------------------------------------
    # Catalogs
    # -------------------------------------------------------------------------

    @app.get("/api/subjects")
    def list_subjects(class_name: Optional[str] = Query(default=None, alias="class")) -> dict[str, Any]:
        return ok([subject_payload(s) for s in service.list_subjects(class_name)])

    @app.get("/api/classes")
    def list_classes() -> dict[str, Any]:
        return ok(service.list_classes())

    return app

