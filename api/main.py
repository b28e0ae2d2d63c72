from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import CountsResponse, OptionsResponse, SelectEntityRequest, ViewStateModel
from staff_core.config import DIMENSION_COLUMNS
from staff_core.crossfilter import (
    ViewState,
    clear,
    normalize_view_state,
    select_entity,
    toggle_cross_filter,
    view_state_to_dict,
)
from staff_core.data import LoadFailure, load_dashboard_data, prepare_context
from staff_core.metrics_debug import compute_debug
from staff_core.metrics_diversity import compute_diversity
from staff_core.metrics_flow import compute_flow
from staff_core.metrics_overview import compute_overview
from staff_core.metrics_table import compute_table
from staff_core.metrics_units import compute_units
from staff_core.table import export_records


app = FastAPI(title="Staff Analytics API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _state_from_model(model: ViewStateModel) -> ViewState:
    return normalize_view_state(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception, name: str) -> JSONResponse:
    if isinstance(exc, LoadFailure):
        logger.error("%s: data unavailable (%s)", name, exc)
        return JSONResponse(status_code=503, content={"error": str(exc), "type": "LoadFailure", "table": exc.table})
    if isinstance(exc, ValueError):
        return JSONResponse(status_code=400, content={"error": str(exc), "type": type(exc).__name__})
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/counts", response_model=CountsResponse)
def meta_counts():
    try:
        data_ctx = load_dashboard_data()
        return _json(data_ctx.get("counts", {}))
    except Exception as exc:
        return _error(exc, "meta_counts")


@app.get("/meta/options", response_model=OptionsResponse)
def meta_options():
    try:
        data_ctx = load_dashboard_data()
        enriched: pd.DataFrame = data_ctx.get("enriched", pd.DataFrame())
        options = {
            dim: (sorted(enriched[col].dropna().astype(str).unique().tolist()) if not enriched.empty else [])
            for dim, col in DIMENSION_COLUMNS.items()
        }
        return _json(options)
    except Exception as exc:
        return _error(exc, "meta_options")


@app.post("/overview")
def overview(state: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_overview(s, ctx))
    except Exception as exc:
        return _error(exc, "overview")


@app.post("/units")
def units(state: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_units(s, ctx))
    except Exception as exc:
        return _error(exc, "units")


@app.post("/diversity")
def diversity(state: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_diversity(s, ctx))
    except Exception as exc:
        return _error(exc, "diversity")


@app.post("/flow")
def flow(
    state: ViewStateModel,
    top_groups: Optional[int] = Query(default=None, ge=0),
    top_units: Optional[int] = Query(default=None, ge=0),
    top_locations: Optional[int] = Query(default=None, ge=0),
):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        top_n = {
            key: value
            for key, value in [("groups", top_groups), ("units", top_units), ("locations", top_locations)]
            if value is not None
        }
        return _json(compute_flow(s, ctx, top_n=top_n))
    except Exception as exc:
        return _error(exc, "flow")


@app.post("/table")
def table(state: ViewStateModel, page_size: int = Query(default=50, ge=1, le=500)):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_table(s, ctx, page_size=page_size))
    except Exception as exc:
        return _error(exc, "table")


@app.post("/debug")
def debug(state: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_debug(s, ctx))
    except Exception as exc:
        return _error(exc, "debug")


@app.post("/crossfilter/select")
def crossfilter_select(request: SelectEntityRequest):
    try:
        s = select_entity(_state_from_model(request.state), request.dimension, request.item)
        return _json({"state": view_state_to_dict(s)})
    except Exception as exc:
        return _error(exc, "crossfilter_select")


@app.post("/crossfilter/clear")
def crossfilter_clear(state: ViewStateModel):
    return _json({"state": view_state_to_dict(clear(_state_from_model(state)))})


@app.post("/crossfilter/toggle")
def crossfilter_toggle(state: ViewStateModel):
    return _json({"state": view_state_to_dict(toggle_cross_filter(_state_from_model(state)))})


@app.post("/export/{fmt}")
def export(fmt: str, state: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        content, media_type, filename = export_records(ctx["filtered"], fmt)
    except Exception as exc:
        return _error(exc, "export")
    return Response(
        content=content.encode("utf-8"),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
