#!/usr/bin/env python
import uvicorn
import sys
import os
from dotenv import load_dotenv

if __name__ == "__main__":
    # Load environment variables
    load_dotenv()

    # Optional first argument: origin base URL the MPDs are fetched from
    if len(sys.argv) > 1:
        os.environ["REMOTE_BASE_URL"] = sys.argv[1]

    # Add the current directory to Python path
    sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

    # Get configuration from environment variables with fallbacks
    host = os.getenv("HOST", "localhost")
    port = int(os.getenv("PORT", "2210"))
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    reload = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes", "on")

    # Run the uvicorn server
    uvicorn.run(
        "steering.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
        access_log=True
    )
