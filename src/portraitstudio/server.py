from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Callable, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from .config import Config, load_config
from .controller import PortraitClient, SessionController
from .gemini_client import GeminiPortraitClient
from .styles import DEFAULT_STYLE, STYLES
from .validation import MAX_UPLOAD_BYTES, UploadCandidate
from .ws_protocol import dumps, error, state, status, styles


logger = logging.getLogger(__name__)

ClientFactory = Callable[[Config], PortraitClient]


def create_app(cfg: Config, client_factory: Optional[ClientFactory] = None) -> FastAPI:
    app = FastAPI(title="AI Portrait Studio", docs_url=None, redoc_url=None)

    factory: ClientFactory = client_factory or GeminiPortraitClient
    sessions: dict[str, SessionController] = {}
    app.state.sessions = sessions

    static_dir = Path(__file__).resolve().parent / "static"
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    @app.get("/", response_class=HTMLResponse)
    async def index() -> FileResponse:
        return FileResponse(str(static_dir / "index.html"))

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse({"ok": True, "model": cfg.model})

    @app.get("/api/styles")
    async def api_styles() -> JSONResponse:
        return JSONResponse({"items": [s.summary() for s in STYLES], "default": DEFAULT_STYLE.id})

    @app.get("/api/sessions/{session_id}/download")
    async def api_download(session_id: str) -> Response:
        ctl = sessions.get(session_id)
        if ctl is None:
            raise HTTPException(status_code=404, detail="Unknown session")
        try:
            artifact = ctl.download()
        except (ValueError, OSError) as e:
            logger.warning("download failed session=%s: %s", session_id, e)
            raise HTTPException(status_code=500, detail="Failed to decode generated image")
        if artifact is None:
            raise HTTPException(status_code=404, detail="No portrait generated yet")
        return Response(
            content=artifact.payload,
            media_type=artifact.content_type,
            headers={"Content-Disposition": artifact.content_disposition},
        )

    @app.websocket("/ws")
    async def ws_endpoint(ws: WebSocket) -> None:
        await handle_ws(cfg, ws, factory, sessions)

    return app


async def _ws_send(ws: WebSocket, payload: dict[str, Any]) -> None:
    await ws.send_text(dumps(payload))


class _UploadBuffer:
    """Collects binary frames between upload_start and upload_end."""

    def __init__(self, mime_type: str, name: str):
        self.mime_type = mime_type
        self.name = name
        self.data = bytearray()
        self.received = 0

    def feed(self, chunk: bytes) -> None:
        self.received += len(chunk)
        # Past the ceiling only the count matters; validation rejects it anyway.
        if len(self.data) <= MAX_UPLOAD_BYTES:
            self.data.extend(chunk)

    def to_candidate(self) -> UploadCandidate:
        return UploadCandidate(
            mime_type=self.mime_type,
            size=self.received,
            source=bytes(self.data),
            name=self.name,
        )


async def handle_ws(
    cfg: Config,
    ws: WebSocket,
    factory: ClientFactory,
    sessions: dict[str, SessionController],
) -> None:
    await ws.accept()

    async def notify(payload: dict[str, Any]) -> None:
        try:
            await _ws_send(ws, payload)
        except (WebSocketDisconnect, RuntimeError):
            # socket already gone; state is dropped with the session
            pass

    try:
        client = factory(cfg)
    except Exception as e:
        logger.error("could not create generation client: %s", e)
        await _ws_send(ws, error("Image generation is not configured.", str(e)))
        await ws.close()
        return

    session_id = uuid.uuid4().hex
    ctl = SessionController(cfg, client, notify)
    sessions[session_id] = ctl
    upload: Optional[_UploadBuffer] = None
    # strong refs; the loop only keeps weak ones
    gen_tasks: set[asyncio.Task[None]] = set()

    async def run_generate() -> None:
        try:
            await ctl.generate()
        except Exception as e:
            logger.exception("generate task failed: %s", e)
            await notify(error("Image generation failed.", str(e)))

    await _ws_send(ws, {"type": "session", "id": session_id})
    await _ws_send(ws, styles(STYLES, DEFAULT_STYLE.id))
    await _ws_send(ws, status("idle", ""))
    await _ws_send(ws, state(ctl.state.snapshot()))

    try:
        while True:
            msg = await ws.receive()
            if msg.get("type") == "websocket.disconnect":
                break

            if "bytes" in msg and msg["bytes"] is not None:
                if upload is not None:
                    upload.feed(msg["bytes"])
                continue

            text = msg.get("text")
            if not text:
                continue
            try:
                data = json.loads(text)
            except Exception:
                await _ws_send(ws, error("Invalid JSON message."))
                continue
            if not isinstance(data, dict):
                await _ws_send(ws, error("Invalid message."))
                continue

            mtype = data.get("type")

            if mtype == "hello":
                await _ws_send(ws, {"type": "session", "id": session_id})
                continue

            if mtype == "upload_start":
                upload = _UploadBuffer(
                    mime_type=str(data.get("mime_type") or ""),
                    name=str(data.get("name") or ""),
                )
                await _ws_send(ws, status("uploading", "Reading image..."))
                continue

            if mtype == "upload_end":
                if upload is None:
                    await _ws_send(ws, error("No upload in progress."))
                    continue
                candidate = upload.to_candidate()
                upload = None
                await ctl.select_file(candidate)
                continue

            if mtype == "select_style":
                await ctl.select_style(str(data.get("id") or ""))
                continue

            if mtype == "set_prompt":
                await ctl.set_custom_prompt(str(data.get("text") or ""))
                continue

            if mtype == "generate":
                # SessionController ignores it while a generation is in flight.
                task = asyncio.create_task(run_generate())
                gen_tasks.add(task)
                task.add_done_callback(gen_tasks.discard)
                continue

            if mtype == "reset":
                upload = None
                await ctl.reset()
                continue

            if mtype == "dismiss_error":
                await ctl.dismiss_error()
                continue

            if mtype == "download":
                if ctl.state.result_b64 is None:
                    await _ws_send(ws, error("No portrait to download yet."))
                    continue
                await _ws_send(
                    ws,
                    {
                        "type": "download",
                        "filename": cfg.download_filename,
                        "content_type": "image/png",
                        "url": f"/api/sessions/{session_id}/download",
                    },
                )
                continue

            await _ws_send(ws, error("Unknown message type.", str(mtype)))

    except WebSocketDisconnect:
        pass
    finally:
        # The remote call cannot be aborted; close() makes its result stale.
        ctl.close()
        sessions.pop(session_id, None)


def _configure_logging(cfg: Config) -> None:
    logging.basicConfig(
        level=cfg.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    cfg = load_config()
    _configure_logging(cfg)

    import uvicorn

    app = create_app(cfg)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=cfg.log_level)


if __name__ == "__main__":
    main()
