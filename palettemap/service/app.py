"""FastAPI application entrypoint for palettemap service mode."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..config import load_config
from ..loader import parse_signals
from ..models import CATEGORIES, MappingReport, MappingSession
from ..orchestrator import Orchestrator
from ..palette import UnknownTokenError, derive_accent_set


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VariablePayload(_CamelModel):
    name: str
    value: str = ""
    computed_value: str = ""
    scope: str = "root"
    selector: str = ":root"
    frequency: int = 0
    usage: List[str] = Field(default_factory=list)


class IconPayload(_CamelModel):
    value: str
    selector: str = "svg"
    color_type: str = "fill"


class SelectorPayload(_CamelModel):
    selector: str
    category: str = "other"
    specificity: int = 0
    frequency: int = 0
    is_interactive: bool = False
    has_visible_background: bool = False
    has_border: bool = False
    is_text_only: bool = False
    current_styles: Dict[str, str] = Field(default_factory=dict)


class MapRequest(_CamelModel):
    flavor: str = "mocha"
    accent: str = "blue"
    mode: Optional[str] = None
    categories: List[str] = Field(default_factory=lambda: list(CATEGORIES))
    variables: List[VariablePayload] = Field(default_factory=list)
    icons: List[IconPayload] = Field(default_factory=list)
    selectors: List[SelectorPayload] = Field(default_factory=list)


class AccentSetResponse(_CamelModel):
    flavor: str
    main: str
    bi_accent1: str
    bi_accent2: str
    co_accent1: str
    co_accent2: str


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator.from_config(load_config(Path.cwd()))


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing palettemap operations."""
    app = FastAPI(title="palettemap", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/accents/{flavor}/{accent}", response_model=AccentSetResponse, response_model_by_alias=True)
    async def accents(flavor: str, accent: str) -> AccentSetResponse:
        try:
            accent_set = derive_accent_set(flavor, accent)
        except UnknownTokenError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return AccentSetResponse(**asdict(accent_set))

    @app.post("/map")
    async def map_signals(
        payload: MapRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        session = MappingSession(flavor=payload.flavor, main_accent=payload.accent, mode=payload.mode)
        bundle = parse_signals(payload.model_dump())
        unknown = [name for name in payload.categories if name not in CATEGORIES]
        if unknown:
            raise HTTPException(status_code=422, detail=f"Unknown categories: {', '.join(unknown)}")

        def _run_map() -> MappingReport:
            return orchestrator.map_all(
                session,
                variables=bundle.variables,
                icons=bundle.icons,
                selectors=bundle.selectors,
                categories=payload.categories,
            )

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run_map)
        return report.to_dict()

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
