import asyncio, uuid, traceback, logging
from typing import Dict
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException

from .models import ConfigError, ProbeOutcome, ScanRequest, build_target
from .wordlists import candidate_count, parse_headers
from .scanner import ProbeScheduler

log = logging.getLogger("dirprobe.main")

app = FastAPI(title="dirprobe")

JOBS: Dict[str, Dict] = {}


@app.post("/api/scan")
async def start_scan(req: ScanRequest):
    try:
        target = build_target(
            str(req.url), req.words, req.extensions,
            headers=parse_headers(req.headers),
            concurrency=req.concurrency,
            follow_redirects=req.follow_redirects,
            verify_tls=req.verify_tls,
        )
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    job_id = str(uuid.uuid4())
    q: asyncio.Queue = asyncio.Queue()
    JOBS[job_id] = {"queue": q}

    async def relay(outcome: ProbeOutcome):
        # only matches and failures are worth streaming
        if outcome.failed:
            await q.put({"type": "failure", "url": outcome.url, "error": outcome.error})
        elif outcome.matched:
            await q.put({"type": "match", "url": outcome.url, "status": outcome.status})

    async def run():
        try:
            log.info("Job %s: %d candidates against %s", job_id, candidate_count(target), target.base_url)
            stats = await ProbeScheduler(target).run(relay)
            await q.put({"type": "done", "stats": stats.model_dump()})
        except Exception:
            log.exception("Job %s failed", job_id)
            await q.put({"type": "error", "message": traceback.format_exc()})
        finally:
            await q.put(None)

    JOBS[job_id]["task"] = asyncio.create_task(run())
    return {"job_id": job_id, "total_candidates": candidate_count(target)}


def _cancel_job(job_id: str) -> bool:
    job = JOBS.pop(job_id, None)
    if not job:
        return False
    task = job.get("task")
    if task and not task.done():
        log.info("Job %s: cancelling", job_id)
        task.cancel()
    return True


@app.websocket("/ws/{job_id}")
async def ws_progress(ws: WebSocket, job_id: str):
    await ws.accept()
    if job_id not in JOBS:
        await ws.send_json({"type": "error", "message": "unknown job"})
        await ws.close(); return
    q: asyncio.Queue = JOBS[job_id]["queue"]

    async def forward():
        while True:
            ev = await q.get()
            if ev is None: return
            await ws.send_json(ev)

    sender = asyncio.create_task(forward())
    # a client going away shows up as websocket.disconnect on receive
    listener = asyncio.create_task(ws.receive())
    try:
        await asyncio.wait({sender, listener}, return_when=asyncio.FIRST_COMPLETED)
        if sender.done() and sender.exception() is None:
            await ws.close()
        else:
            log.info("Job %s: client disconnected", job_id)
    finally:
        for t in (sender, listener):
            t.cancel()
        _cancel_job(job_id)


@app.delete("/api/scan/{job_id}")
async def cancel(job_id: str):
    if not _cancel_job(job_id):
        raise HTTPException(status_code=404, detail="unknown job")
    return {"status": "canceled"}
