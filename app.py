import os
import json
import uuid
import logging
from typing import Optional, Literal

import requests
from fastapi import FastAPI, HTTPException, UploadFile, File, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, HttpUrl
from starlette.responses import FileResponse
from concurrent.futures import ThreadPoolExecutor

from string_loom.config import (
    JOBS_ROOT,
    LOG_LEVEL,
    NUM_PINS,
    NUM_THREADS,
    PUBLIC_BASE_URL,
    SNAPSHOT_EVERY,
    SOLVER_WORKERS,
)
from string_loom.string_art import generate_string_art

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)

os.makedirs(JOBS_ROOT, exist_ok=True)

DOWNLOAD_TIMEOUT = 30  # seconds

RESULT_PNG = "string_art_result.png"
RESULT_CSV = "string_art_lines.csv"
RESULT_PDF = "string_art_instructions.pdf"
RESULT_MP4 = "string_art_timelapse.mp4"


app = FastAPI(title="String Loom API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# A tiny thread pool so jobs run in the background
EXECUTOR = ThreadPoolExecutor(max_workers=2)


# -------------------------------------------------------------------
# Pydantic models
# -------------------------------------------------------------------

class RedeemBody(BaseModel):
    imageUrl: HttpUrl
    pins: int = Field(NUM_PINS, ge=3)
    threads: int = Field(NUM_THREADS, ge=0)
    radius: Optional[int] = Field(None, ge=1)


class JobStatus(BaseModel):
    jobId: str
    status: Literal["queued", "processing", "done", "error"]
    error: Optional[str] = None
    linesCount: Optional[int] = None
    resultImageUrl: Optional[str] = None
    resultPdfUrl: Optional[str] = None
    resultCsvUrl: Optional[str] = None
    resultTimelapseUrl: Optional[str] = None


# -------------------------------------------------------------------
# Helper functions for status JSON per job
# -------------------------------------------------------------------

def job_dir(job_id: str) -> str:
    return os.path.join(JOBS_ROOT, job_id)


def status_path(job_id: str) -> str:
    return os.path.join(job_dir(job_id), "status.json")


def read_status(job_id: str) -> JobStatus:
    path = status_path(job_id)
    if not os.path.exists(path):
        raise HTTPException(status_code=404, detail="Unknown job_id")
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return JobStatus(**data)


def write_status(status: JobStatus) -> None:
    jd = job_dir(status.jobId)
    os.makedirs(jd, exist_ok=True)
    path = status_path(status.jobId)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(status.model_dump(), f)


def build_file_url(job_id: str, filename: str) -> str:
    if PUBLIC_BASE_URL:
        base = PUBLIC_BASE_URL.rstrip("/")
        return f"{base}/files/{job_id}/{filename}"
    # Fallback: relative path
    return f"/files/{job_id}/{filename}"


def new_job() -> str:
    job_id = uuid.uuid4().hex[:12]
    os.makedirs(job_dir(job_id), exist_ok=True)
    return job_id


# -------------------------------------------------------------------
# Core pipeline: string art + CSV + PDF + timelapse
# -------------------------------------------------------------------

def generate_string_art_assets(input_path: str, job_id: str,
                               pins: int = NUM_PINS, threads: int = NUM_THREADS,
                               radius: Optional[int] = None) -> None:
    """
    Runs the full pipeline for a given job:
    - solve the thread path and save the threaded PNG
    - CSV & PDF instructions
    - frames + MP4 timelapse
    Updates status.json as it goes.
    """
    jd = job_dir(job_id)
    os.makedirs(jd, exist_ok=True)

    status = JobStatus(jobId=job_id, status="processing")
    write_status(status)

    logger.info("[JOB %s] Starting pipeline, input_path=%s pins=%d threads=%d",
                job_id, input_path, pins, threads)

    try:
        result = generate_string_art(
            input_path,
            jd,
            num_pins=pins,
            num_lines=threads,
            radius=radius,
            workers=SOLVER_WORKERS,
            snapshot_every=SNAPSHOT_EVERY,
            pdf=True,
        )

        status.status = "done"
        status.linesCount = result["lines_count"]
        status.resultImageUrl = build_file_url(job_id, RESULT_PNG)
        status.resultCsvUrl = build_file_url(job_id, RESULT_CSV)
        if "instructions_pdf" in result:
            status.resultPdfUrl = build_file_url(job_id, RESULT_PDF)
        if "timelapse_mp4" in result:
            status.resultTimelapseUrl = build_file_url(job_id, RESULT_MP4)
        write_status(status)

        logger.info("[JOB %s] Finished OK with %d lines", job_id, result["lines_count"])

    except Exception as e:
        status.status = "error"
        status.error = str(e)
        write_status(status)

        logger.exception("[JOB %s] ERROR: %r", job_id, e)


def queue_job(job_id: str, input_path: str, pins: int, threads: int,
              radius: Optional[int]) -> JobStatus:
    status = JobStatus(jobId=job_id, status="queued")
    write_status(status)
    EXECUTOR.submit(generate_string_art_assets, input_path, job_id, pins, threads, radius)
    return status


# -------------------------------------------------------------------
# API endpoints
# -------------------------------------------------------------------

@app.get("/")
def root():
    return {
        "status": "ok",
        "publicBaseUrl": PUBLIC_BASE_URL or "(relative)",
        "filesRoot": JOBS_ROOT,
        "defaultPins": NUM_PINS,
        "defaultThreads": NUM_THREADS,
    }


@app.post("/redeem-upload", response_model=JobStatus)
async def redeem_upload(
    file: UploadFile = File(...),
    pins: int = Query(NUM_PINS, ge=3),
    threads: int = Query(NUM_THREADS, ge=0),
    radius: Optional[int] = Query(None, ge=1),
):
    """
    Start a job from an uploaded image.
    Always writes a status.json file so /status/{job_id} never 404s.
    """
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Uploaded file must be an image")

    job_id = new_job()
    input_path = os.path.join(job_dir(job_id), "input.png")

    try:
        contents = await file.read()
        with open(input_path, "wb") as out:
            out.write(contents)
    except OSError as e:
        status = JobStatus(jobId=job_id, status="error", error=f"Failed to save upload: {e}")
        write_status(status)
        return status

    return queue_job(job_id, input_path, pins, threads, radius)


@app.post("/redeem", response_model=JobStatus)
def redeem(body: RedeemBody):
    """Start a job from an image URL."""
    try:
        resp = requests.get(str(body.imageUrl), timeout=DOWNLOAD_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise HTTPException(status_code=400, detail=f"Could not fetch image: {e}")

    content_type = resp.headers.get("content-type", "")
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="URL does not point to an image")

    job_id = new_job()
    input_path = os.path.join(job_dir(job_id), "input.png")
    with open(input_path, "wb") as out:
        out.write(resp.content)

    return queue_job(job_id, input_path, body.pins, body.threads, body.radius)


@app.get("/status/{job_id}", response_model=JobStatus)
def get_status(job_id: str):
    return read_status(job_id)


@app.get("/files/{job_id}/{filename}")
def get_file(job_id: str, filename: str):
    if os.path.basename(filename) != filename or os.path.basename(job_id) != job_id:
        raise HTTPException(status_code=404, detail="File not found")
    path = os.path.join(job_dir(job_id), filename)
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path)
