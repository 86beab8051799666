"""Serve the relay with uvicorn: ``python -m whop_oauth2``."""
import uvicorn

from . import config

if __name__ == "__main__":
    uvicorn.run(
        "whop_oauth2.main:create_app",
        factory=True,
        host=config.HOST,
        port=config.PORT,
    )
