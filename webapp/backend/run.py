import uvicorn

from config import settings

if __name__ == "__main__":
    # workers=1: saves of the shared store are serialized in-process
    from main import app
    uvicorn.run(app, host="0.0.0.0", port=8000, workers=1, log_level=settings.log_level.lower())
