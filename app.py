"""
Milestone Keeper API
Main application entry point.

Serves on-demand milestone runs for GitHub repositories: closing milestones
whose issues are all done and creating the next instance of every recurring
milestone ahead of its due date.
"""

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from milestone_keeper.api.routes import router
from milestone_keeper.github.client import GitHubAPIError
from milestone_keeper.processing.templates import GLOBAL_MILESTONES
from milestone_keeper.utils.config import ConfigurationError, get_github_settings, load_config
from milestone_keeper.utils.logger import setup_logging

load_dotenv(override=True)

api_config = load_config("config/api_config.yaml")
logger = setup_logging(config=api_config.get('logging'))

app = FastAPI(
    title=api_config['api']['title'],
    description=api_config['api']['description'],
    version=api_config['api']['version'],
    docs_url="/docs",
    redoc_url="/redoc"
)

cors_config = api_config.get('cors', {})
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_config.get('allow_origins', ["*"]),
    allow_credentials=True,
    allow_methods=cors_config.get('allow_methods', ["*"]),
    allow_headers=cors_config.get('allow_headers', ["*"]),
)

app.include_router(router, prefix=api_config['api']['prefix'])


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """A run that cannot be configured is the caller's problem."""
    logger.error(f"Invalid processing request: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(GitHubAPIError)
async def github_error_handler(request: Request, exc: GitHubAPIError):
    """GitHub failures abort the run and surface as a bad gateway."""
    return JSONResponse(
        status_code=502,
        content={"detail": f"GitHub request failed: {exc.message}", "github_status": exc.status_code},
    )


@app.on_event("startup")
async def startup_event():
    """Log the GitHub target and run mode on startup."""
    settings = get_github_settings(api_config)
    logger.info(f"Starting Milestone Keeper API {api_config['api']['version']}")
    logger.info(f"GitHub API: {settings.api_url}, default repository: {settings.repository or 'none'}")
    logger.info(f"Tracking {len(GLOBAL_MILESTONES)} recurring milestones (debug_only={settings.debug_only})")
    if not settings.token:
        logger.warning("No GITHUB_TOKEN/REPO_TOKEN set; processing requests will be rejected")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Milestone Keeper API...")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    prefix = api_config['api']['prefix']
    return {
        "name": api_config['api']['title'],
        "version": api_config['api']['version'],
        "description": api_config['api']['description'],
        "docs": "/docs",
        "health": f"{prefix}/health",
        "templates": f"{prefix}/milestones/templates",
        "process": f"{prefix}/milestones/process"
    }
