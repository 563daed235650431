import uvicorn

from config import settings

if __name__ == "__main__":
    # Reload only while developing
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )
