"""Serve the Milestone Keeper API with uvicorn."""

import os

import app
import uvicorn

if __name__ == "__main__":
    server_config = app.api_config.get('server', {})

    uvicorn.run(
        "app:app",
        host=os.getenv("HOST", server_config.get('host', '0.0.0.0')),
        port=int(os.getenv("PORT", server_config.get('port', 8000))),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
