# -*- coding: utf-8 -*-
"""
Entry point to run the service via python -m jobs_blog.
"""
import uvicorn

from jobs_blog.config import settings


def main():
    """Start the Uvicorn server."""
    uvicorn.run(
        "jobs_blog.api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
