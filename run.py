#!/usr/bin/env python3
"""
Run the API locally with auto-reload
"""
import os
import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "campus_events.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
