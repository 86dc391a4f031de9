from __future__ import annotations

import logging
import os
import tempfile
from typing import Dict, List, Literal, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .audio import AudioBuffer, DEFAULT_SAMPLE_RATE, load_audio_mono
from .classifier import VocalModeClassifier
from .config import ChallengeDirection
from .errors import AudioFormatError
from .pipeline import routed_to_dict
from .presets import preset_by_name
from .report import summarize_result
from .routing import VocalModeRouter
from .scoring import ScoringEngine
from .spectral import SpectralComparer

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = {".wav", ".mp3", ".flac", ".m4a", ".ogg"}

app = FastAPI(title="Reverse Singing Score API", version="0.1.0")

# --- CORS (for the game's dev client) ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ScoreResponse(BaseModel):
    score: int
    raw_score: float
    metrics: Dict[str, float]
    feedback: List[str]
    content: Optional[dict] = None
    is_garbage: bool = False
    vocal_mode: Optional[str] = None
    detected_mode: Optional[str] = None


class ClassifyResponse(BaseModel):
    mode: str
    confidence: float
    features: Dict[str, float]


class CompareResponse(BaseModel):
    similarity: int


async def _load_upload(file: UploadFile, sample_rate: int) -> AudioBuffer:
    suffix = os.path.splitext(file.filename or "")[1].lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise HTTPException(status_code=415, detail=f"Unsupported file type: {suffix}")

    contents = await file.read()
    # librosa decodes from a path
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        tmp_path = tmp.name
        tmp.write(contents)
    try:
        return load_audio_mono(tmp_path, target_sr=sample_rate)
    except AudioFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        os.remove(tmp_path)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/score", response_model=ScoreResponse)
async def score(
    attempt: UploadFile = File(...),
    reference: UploadFile = File(...),
    preset: str = Form("normal"),
    direction: Literal["forward", "reverse"] = Form("forward"),
    sample_rate: int = Form(DEFAULT_SAMPLE_RATE),
    auto_mode: bool = Form(False),
):
    try:
        bundle = preset_by_name(preset)
    except KeyError as e:
        raise HTTPException(status_code=422, detail=str(e.args[0]))

    attempt_audio = await _load_upload(attempt, sample_rate)
    reference_audio = await _load_upload(reference, sample_rate)

    if auto_mode:
        routed = VocalModeRouter().score(
            attempt_audio, reference_audio, level=bundle.difficulty, direction=ChallengeDirection(direction),
        )
        return ScoreResponse(**routed_to_dict(routed))

    result = ScoringEngine(bundle).score(attempt_audio, reference_audio, direction=ChallengeDirection(direction))
    return ScoreResponse(**summarize_result(result))


@app.post("/classify", response_model=ClassifyResponse)
async def classify(
    file: UploadFile = File(...),
    sample_rate: int = Form(DEFAULT_SAMPLE_RATE),
):
    audio = await _load_upload(file, sample_rate)
    analysis = VocalModeClassifier().classify(audio)
    return ClassifyResponse(
        mode=analysis.mode.value,
        confidence=analysis.confidence,
        features={
            "pitch_stability": analysis.features.pitch_stability,
            "pitch_contour": analysis.features.pitch_contour,
            "mfcc_spread": analysis.features.mfcc_spread,
            "voiced_ratio": analysis.features.voiced_ratio,
        },
    )


@app.post("/compare", response_model=CompareResponse)
async def compare(
    a: UploadFile = File(...),
    b: UploadFile = File(...),
    sample_rate: int = Form(DEFAULT_SAMPLE_RATE),
):
    audio_a = await _load_upload(a, sample_rate)
    audio_b = await _load_upload(b, sample_rate)
    return CompareResponse(similarity=SpectralComparer().compare(audio_a, audio_b))
