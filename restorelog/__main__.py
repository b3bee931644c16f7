import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run(
        "restorelog.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
