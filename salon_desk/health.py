# salon_desk/health.py
from fastapi import APIRouter, Depends
from sqlalchemy import text

from salon_desk.dependencies.services import get_database
from salon_desk.db.session import Database

router = APIRouter()


@router.get("/mcp/info")
def mcp_info():
    return {"status": "ok", "transport": "streamable-http", "path": "/mcp"}


@router.get("/health")
def health(database: Database = Depends(get_database)):
    with database.engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return {"ok": True}
