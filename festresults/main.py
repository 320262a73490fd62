from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .config import Settings, load_settings
from .errors import EmptyFeedError, FestResultsError, FetchError, StoreError
from .grouping import ticker_items
from .models import (
    Certificate,
    CycleStatus,
    HealthResponse,
    ProgramView,
    PublicationRequest,
    RefreshResponse,
    ResultsResponse,
    ResultStats,
    WallResponse,
)
from .rules import team_full_name
from .service import ResultsService

logger = logging.getLogger(__name__)


def get_service(request: Request) -> ResultsService:
    return request.app.state.service


def create_app(service: Optional[ResultsService] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.service = service or ResultsService.from_settings(settings)
        try:
            await app.state.service.refresh()
        except FestResultsError as exc:
            logger.warning("Initial load failed (%s): %s", exc.kind, exc)

        poller = None
        if settings.refresh_interval > 0:
            poller = asyncio.create_task(app.state.service.run_periodic(settings.refresh_interval))
        try:
            yield
        finally:
            if poller is not None:
                poller.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await poller

    app = FastAPI(
        title="festresults",
        description="Live festival results with per-program publication control",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(FetchError)
    @app.exception_handler(EmptyFeedError)
    async def feed_error_handler(request: Request, exc: FestResultsError):
        return JSONResponse(
            status_code=502,
            content={"detail": str(exc), "kind": "results_unavailable"},
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(
            status_code=503,
            content={"detail": str(exc), "kind": "publish_control_unavailable"},
        )

    @app.get("/health", response_model=HealthResponse)
    def health():
        return {"ok": True}

    @app.post("/refresh", response_model=RefreshResponse)
    async def refresh(service: ResultsService = Depends(get_service)):
        auto_published = await service.refresh()
        return {"cycle": service.repository.last_cycle, "auto_published": auto_published}

    @app.get("/status", response_model=CycleStatus)
    def status(service: ResultsService = Depends(get_service)):
        return service.repository.last_cycle

    @app.get("/results", response_model=ResultsResponse)
    def results(
        search: str = "",
        section: Optional[str] = None,
        team: Optional[str] = None,
        service: ResultsService = Depends(get_service),
    ):
        groups = service.published_groups(search, section=section, team=team)
        stats = ResultStats(
            programs=len(groups),
            entries=sum(len(g.entries) for g in groups),
            teams=len({e.team_code for g in groups for e in g.entries if e.team_code}),
        )
        return {"stats": stats, "groups": groups, "cycle": service.repository.last_cycle}

    @app.get("/wall", response_model=WallResponse)
    def wall(service: ResultsService = Depends(get_service)):
        groups = service.published_groups()
        return {"groups": groups, "ticker": ticker_items(groups)}

    @app.get("/programs", response_model=List[ProgramView])
    async def programs(service: ResultsService = Depends(get_service)):
        await service.reconciler.load()
        return service.reconciler.views()

    @app.put("/programs/{program_code}/publication", response_model=ProgramView)
    async def set_publication(
        program_code: str,
        body: PublicationRequest,
        service: ResultsService = Depends(get_service),
    ):
        if program_code not in service.repository.unique_program_codes():
            raise HTTPException(status_code=404, detail=f"Unknown program {program_code}")
        await service.reconciler.set_published(program_code, body.is_published)
        return next(v for v in service.reconciler.views() if v.code == program_code)

    @app.post("/programs/publication", response_model=List[ProgramView])
    async def set_all_publication(body: PublicationRequest, service: ResultsService = Depends(get_service)):
        await service.reconciler.set_all(body.is_published)
        return service.reconciler.views()

    @app.get("/certificates/{chest_no}", response_model=List[Certificate])
    def certificates(chest_no: str, service: ResultsService = Depends(get_service)):
        entries = service.repository.for_chest_no(chest_no.strip())
        if not entries:
            raise HTTPException(
                status_code=404,
                detail=f'No participant found with Chest Number "{chest_no}".',
            )
        return [
            Certificate(
                name=e.candidate_name,
                team=team_full_name(e.team_code),
                program_name=e.program_name,
                position=e.position,
                grade=e.grade,
            )
            for e in entries
        ]

    return app


app = create_app()
