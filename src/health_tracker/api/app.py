"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from health_tracker.api.models import EntryInput, HistoryItem
from health_tracker.app_logging import configure_logging
from health_tracker.containers import AppContainer
from health_tracker.domain.analytics import DashboardSummary
from health_tracker.domain.backup import (
    EntryDocument,
    ExportDocument,
    ImportReport,
    SettingsDocument,
)
from health_tracker.domain.entries import DailyEntry
from health_tracker.errors import StorageFault, ValidationFault
from health_tracker.services.dashboard import build_dashboard, history_rows


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        try:
            await state_container.record_store.initialize()
            await state_container.migrator.migrate()
        except StorageFault:
            logger.exception("Startup migration failed; not serving requests")
            await state_container.close_resources()
            raise
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ValidationFault)
    async def validation_fault_handler(
        request: Request, exc: ValidationFault
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(StorageFault)
    async def storage_fault_handler(
        request: Request, exc: StorageFault
    ) -> JSONResponse:
        logger.error(
            "Storage failure on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage unavailable, please retry."},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/entries")
    async def list_entries(request: Request) -> list[EntryDocument]:
        """Return all entries, newest first."""
        entries = await _container(request).entry_repository.load_all()
        return [EntryDocument.from_entry(entry) for entry in entries]

    @app.get("/entries/{day}")
    async def get_entry(day: str, request: Request) -> EntryDocument:
        """Return one day's entry."""
        entry = await _container(request).entry_repository.get(day)
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"No entry for {day}"
            )
        return EntryDocument.from_entry(entry)

    @app.put("/entries/{day}")
    async def put_entry(
        day: str, payload: EntryInput, request: Request
    ) -> EntryDocument:
        """Replace the entry for a day with the payload."""
        entry = DailyEntry(
            date=day,
            weight=payload.weight,
            water=payload.water,
            calories=payload.calories,
            note=payload.note,
            activity=payload.activity,
        )
        saved = await _container(request).entry_repository.save(entry)
        return EntryDocument.from_entry(saved)

    @app.delete("/entries/{day}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entry(day: str, request: Request) -> Response:
        """Delete the entry for a day."""
        await _container(request).entry_repository.delete_by_date(day)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/history")
    async def history(request: Request) -> list[HistoryItem]:
        """Return entries with day-over-day weight change."""
        entries = await _container(request).entry_repository.load_all()
        return [
            HistoryItem(entry=EntryDocument.from_entry(row.entry), change=row.change)
            for row in history_rows(entries)
        ]

    @app.get("/settings")
    async def get_settings(request: Request) -> SettingsDocument:
        """Return the profile settings."""
        settings = await _container(request).entry_repository.load_settings()
        return SettingsDocument.from_settings(settings)

    @app.put("/settings")
    async def put_settings(
        payload: SettingsDocument, request: Request
    ) -> SettingsDocument:
        """Replace the profile settings."""
        saved = await _container(request).entry_repository.save_settings(
            payload.to_settings()
        )
        return SettingsDocument.from_settings(saved)

    @app.get("/stats")
    async def stats(request: Request) -> DashboardSummary:
        """Return dashboard statistics."""
        state_container = _container(request)
        entries = await state_container.entry_repository.load_all()
        settings = await state_container.entry_repository.load_settings()
        today = state_container.entry_repository.today()
        return build_dashboard(entries, settings, today)

    @app.get("/export")
    async def export_backup(request: Request) -> ExportDocument:
        """Return a full backup document."""
        return await _container(request).backup_service.export_document()

    @app.post("/import")
    async def import_backup(document: ExportDocument, request: Request) -> ImportReport:
        """Merge a backup document into the store."""
        return await _container(request).backup_service.import_document(document)

    @app.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
    async def reset(request: Request) -> Response:
        """Erase all data and restore default settings."""
        await _container(request).entry_repository.reset_all()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


def _container(request: Request) -> AppContainer:
    return request.app.state.container
