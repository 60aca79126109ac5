from __future__ import annotations

import os
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse

from logosdeck.config import configure_logging, settings
from logosdeck.images.illustration import IllustrationProvider
from logosdeck.images.resolver import SLIDE_ILLUSTRATION_SIZE, illustrate_slide
from logosdeck.models import ExportRequest, IllustrateRequest, IllustrateResponse
from logosdeck.pipeline import export_deck
from logosdeck.templates import available_templates
from logosdeck.theme import THEME_PRESETS, available_themes

MEDIA_TYPES = {
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "pdf": "application/pdf",
}

app = FastAPI(title="Logos Deck Renderer")


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/themes")
def themes() -> list[dict]:
    return [{"id": tid, "name": THEME_PRESETS[tid].name, "decor": THEME_PRESETS[tid].decor}
            for tid in available_themes()]


@app.get("/templates")
def templates() -> list[dict]:
    return [{"id": tid, "name": name, "description": desc} for tid, name, desc in available_templates()]


def _export(req: ExportRequest, fmt: str) -> FileResponse:
    try:
        result = export_deck(req.deck, formats=(fmt,), theme=req.theme)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    path = Path(result.paths[fmt])
    return FileResponse(path=str(path), media_type=MEDIA_TYPES[fmt], filename=path.name)


@app.post("/export/pptx")
def export_pptx(req: ExportRequest) -> FileResponse:
    return _export(req, "pptx")


@app.post("/export/pdf")
def export_pdf(req: ExportRequest) -> FileResponse:
    return _export(req, "pdf")


@app.post("/illustrate", response_model=IllustrateResponse)
def illustrate(req: IllustrateRequest) -> IllustrateResponse:
    prompt = req.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")
    provider = IllustrationProvider.from_settings(settings)
    width, height = SLIDE_ILLUSTRATION_SIZE
    image_url = provider.url_for(prompt, width=width, height=height)
    if req.deck is None or not req.slide_id:
        return IllustrateResponse(image_url=image_url)

    try:
        deck, outcome = illustrate_slide(req.deck, req.slide_id, prompt, provider, settings)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown slide: {req.slide_id}") from None
    return IllustrateResponse(image_url=image_url, deck=deck, condition=outcome.condition)


@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    os.makedirs(settings.output_dir, exist_ok=True)
    os.makedirs(settings.cache_dir, exist_ok=True)
