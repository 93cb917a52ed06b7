import uvicorn

from parkwise.config import settings

if __name__ == "__main__":
    try:
        uvicorn.run("parkwise.main:app", host=settings.HOST, port=settings.PORT, reload=True)
    except KeyboardInterrupt:
        print("\nShutting down server...")
