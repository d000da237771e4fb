"""Repo-root Uvicorn entrypoint.

Lets the job board API run from the repo root:

    uvicorn app.main:app --reload

The FastAPI app itself lives in `backend/jobboard/main.py`.
"""

from backend.jobboard.main import app  # re-export
