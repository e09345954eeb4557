from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging

from db import get_db, init_db
from placement.routes import router as placement_router

logging.basicConfig(level=logging.INFO)
logging.info("App starting with DATABASE_URL")

app = FastAPI(title="Placement Readiness & Matching")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(placement_router)

@app.on_event("startup")
def create_tables():
    init_db()

@app.get("/health", tags=["meta"], summary="Health check")
def health():
    try:
        with get_db() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logging.error(f"Database health check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ok"}
