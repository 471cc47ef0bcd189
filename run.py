#!/usr/bin/env python3
"""
Run script for the School Directory backend
"""
import uvicorn

from school_directory.config.settings import settings

if __name__ == "__main__":
    uvicorn.run(
        "school_directory.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
