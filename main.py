import logging
import os

from fastapi import FastAPI

from database import init_db
from routers import correction, doses, events, lights, params, sync

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Reef Logbook")

app.include_router(params.router)
app.include_router(doses.router)
app.include_router(events.router)
app.include_router(lights.router)
app.include_router(correction.router)
app.include_router(sync.router)

init_db()
