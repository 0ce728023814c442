"""
FastAPI ingest service for the TARC profile bot
───────────────────────────────────────────────
• Runs in the same event loop as the Discord bot (see profilebot.py),
  so both sides share one StatsCache.
• The Roblox game server POSTs telemetry to /ingest.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ingest import IngestHandler, InvalidKey, Unauthorized

log = logging.getLogger("web")


def create_app(handler: IngestHandler) -> FastAPI:
    app = FastAPI(debug=False)
    app.state.ingest = handler

    # ═════════════════════════════  PUBLIC PAGE  ══════════════════════════
    @app.get("/", response_class=PlainTextResponse)
    async def index():
        return "TARC Profile Bot running ✅"

    # ═════════════════════════════  INGEST  ═══════════════════════════════
    @app.post("/ingest")
    async def ingest(request: Request):
        """Roblox → bot: { secret, userId, xp, kills, playTimeSeconds }."""
        try:
            payload = await request.json()
        except ValueError:
            return JSONResponse({"ok": False, "error": "Bad JSON"}, status_code=400)

        try:
            app.state.ingest.ingest_payload(payload)
        except Unauthorized:
            return JSONResponse({"ok": False, "error": "Invalid secret"}, status_code=401)
        except InvalidKey:
            return JSONResponse({"ok": False, "error": "Bad userId"}, status_code=400)
        except Exception:
            log.exception("Ingest failed")
            return JSONResponse({"ok": False}, status_code=500)

        return JSONResponse({"ok": True})

    return app
