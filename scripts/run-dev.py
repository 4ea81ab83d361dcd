"""
FastAPI Development Server

Run the Lumo agent API in development mode.

Usage:
    python scripts/run-dev.py
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
os.chdir(project_root)

import uvicorn
from loguru import logger


def main():
    """Start the FastAPI development server"""
    logger.info("=" * 80)
    logger.info("Lumo Agent API - development server")
    logger.info("=" * 80)
    logger.info("API Documentation: http://localhost:8000/docs")
    logger.info("Global chat: GET http://localhost:8000/api/agent/global/chat/stream?message=...")
    logger.info("Daily digest: GET http://localhost:8000/api/agent/global/digest")
    logger.info("Project chat: GET http://localhost:8000/api/projects/<slug>/agent/chat/stream?message=...")
    logger.info("Press CTRL+C to stop the server")

    uvicorn.run(
        "lumo.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
        access_log=True,
        reload_dirs=[str(project_root / "lumo")],
    )


if __name__ == "__main__":
    main()
