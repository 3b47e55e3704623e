import uvicorn

from settings.config import settings


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)
