"""FastAPI server exposing session and navigation controls for external front-ends."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from mode_controller.workflow import AssistWorkflow, build_workflow
from utils.log_utils import tprint


class StartNavigationRequest(BaseModel):
    destination: str = Field(min_length=1, max_length=300)


def create_app(workflow: AssistWorkflow | None = None) -> FastAPI:
    workflow = workflow or build_workflow()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        workflow.shutdown()

    app = FastAPI(title="Aria Assist API", version="0.1.0", lifespan=lifespan)
    app.state.workflow = workflow

    # Local front-ends (browser, webview) run on other origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/status")
    def status():
        return workflow.status()

    @app.post("/session/start")
    def start_session():
        if not workflow.start():
            raise HTTPException(status_code=409, detail=workflow.camera_error or "Camera unavailable")
        return {"status": "ok"}

    @app.post("/session/stop")
    def stop_session():
        try:
            workflow.stop()
        except Exception as exc:
            # Stop is best-effort; the session is gone either way.
            tprint(f"[API][ERROR] Failed to stop session: {exc}")
        return {"status": "ok"}

    @app.post("/stop")
    def stop_mode():
        state = workflow.stop_session()
        return {"status": "ok", "session": state.to_dict()}

    @app.post("/capture")
    def manual_capture():
        if not workflow.manual_capture():
            raise HTTPException(status_code=409, detail="Select a mode first or wait for the current analysis")
        return {"status": "processing"}

    @app.post("/navigation/start")
    def start_navigation(req: StartNavigationRequest):
        try:
            workflow.start_navigation(req.destination)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return {"status": "pending", "destination": req.destination.strip()}

    @app.post("/navigation/next")
    def next_step():
        instruction = workflow.next_step()
        return {"instruction": instruction, "navigation": workflow.navigation.to_dict()}

    @app.post("/navigation/repeat")
    def repeat_instruction():
        return {"instruction": workflow.repeat_instruction()}

    @app.get("/speech/quota")
    def speech_quota():
        quota = getattr(workflow.speech, "quota_status", None)
        return {"quota": quota() if quota else None}

    return app


def run() -> None:
    import uvicorn

    uvicorn.run(
        "api.server:create_app",
        factory=True,
        host=os.getenv("ARIA_API_HOST", "127.0.0.1"),
        port=int(os.getenv("ARIA_API_PORT", "8000")),
    )


if __name__ == "__main__":
    run()
