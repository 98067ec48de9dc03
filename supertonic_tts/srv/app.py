"""FastAPI application serving synthesis over HTTP."""

from __future__ import annotations

import threading
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel

from supertonic_tts.config import AssetsConfig
from supertonic_tts.errors import AssetLoadError, SynthesisFailure, VoiceNotFound
from supertonic_tts.pipeline import TextToSpeech
from supertonic_tts.srv.config import SrvConfig
from supertonic_tts.voices import VOICES, list_voices
from supertonic_tts.wav import encode_wav


class SynthesisRequest(BaseModel):
    text: str
    lang: Optional[str] = None
    voice: Optional[str] = None
    total_step: Optional[int] = None
    speed: Optional[float] = None
    silence_duration: Optional[float] = None


def _build_engine(config: SrvConfig) -> TextToSpeech:
    assets = AssetsConfig(assets=config.assets) if config.assets else AssetsConfig()
    tts = TextToSpeech.from_assets(assets, backend=config.backend)
    tts.load_voice(config.default_voice)
    return tts


def create_app(
    tts: Optional[TextToSpeech] = None,
    config: Optional[SrvConfig] = None,
) -> FastAPI:
    """Create the FastAPI app.

    When ``tts`` is None the engine is built from ``config`` at startup.
    """
    if config is None:
        config = SrvConfig()

    # Voice switch + synthesis must not interleave across requests
    lock = threading.Lock()
    owns_engine = tts is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.start_time = time.time()
        if app.state.tts is None:
            app.state.tts = _build_engine(config)
        yield
        if owns_engine and app.state.tts is not None:
            app.state.tts.close()
            app.state.tts = None

    app = FastAPI(title="supertonic-srv", lifespan=lifespan)
    app.state.tts = tts
    app.state.config = config
    app.state.start_time = time.time()

    def _engine() -> TextToSpeech:
        if app.state.tts is None:
            raise HTTPException(status_code=503, detail="Engine not loaded")
        return app.state.tts

    @app.post("/synthesize")
    def synthesize(body: SynthesisRequest) -> Response:
        engine = _engine()
        voice = body.voice or config.default_voice
        try:
            with lock:
                if engine.current_voice != voice:
                    engine.load_voice(voice)
                wav, duration = engine.synthesize(
                    body.text,
                    body.lang or config.default_lang,
                    total_step=body.total_step if body.total_step is not None else config.total_step,
                    speed=body.speed if body.speed is not None else config.speed,
                    silence_duration=(
                        body.silence_duration
                        if body.silence_duration is not None
                        else config.silence_duration
                    ),
                )
        except VoiceNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except (SynthesisFailure, AssetLoadError) as e:
            raise HTTPException(status_code=500, detail=str(e))
        return Response(
            content=encode_wav(wav, engine.sample_rate),
            media_type="audio/wav",
            headers={"X-Duration-Seconds": f"{duration:.3f}"},
        )

    @app.get("/voices")
    def voices() -> dict:
        engine = _engine()
        if engine.assets.is_local and engine.assets.voices_dir.is_dir():
            names = list_voices(engine.assets.voices_dir)
        else:
            names = list(VOICES)
        return {"voices": names, "current": engine.current_voice}

    @app.get("/health")
    def health() -> dict:
        engine = app.state.tts
        return {
            "status": "ok" if engine is not None else "loading",
            "sample_rate": engine.sample_rate if engine is not None else None,
            "current_voice": engine.current_voice if engine is not None else None,
            "uptime_s": round(time.time() - app.state.start_time, 1),
        }

    return app
