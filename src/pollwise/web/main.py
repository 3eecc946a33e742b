# src/pollwise/web/main.py
from fastapi import FastAPI

from pollwise import __version__
from pollwise.core.logging import init_logging
from pollwise.web.routes import router

init_logging()

# Create the FastAPI application
app = FastAPI(
    title="Pollwise",
    description="Bias and grammar review for SMS poll messages",
    version=__version__,
)

app.include_router(router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":  # pragma: no cover - CLI execution
    import uvicorn

    from pollwise.config import config

    uvicorn.run(app, host="0.0.0.0", port=config.system.port)
