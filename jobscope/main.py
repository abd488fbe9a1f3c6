import logging

from fastapi import FastAPI
from jobscope.routes import job_routes # pylint: disable=import-error
from jobscope.core.config import settings # pylint: disable=import-error

# Setup logging (configure only if not already configured)
if not logging.getLogger().handlers:
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), format='%(message)s')

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

app.include_router(job_routes.router, prefix="/api", tags=["Jobs"])


@app.get("/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}
