from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import execute, health, parse, validate
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

setup_logging()

app = FastAPI(
    title="Intent Copilot API",
    description="Natural-language trading intents: parse, validate and prepare swaps",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(health.router, tags=["Health"])
app.include_router(parse.router, tags=["Intent"])
app.include_router(validate.router, tags=["Intent"])
app.include_router(execute.router, tags=["Execution"])


@app.get("/")
async def root():
    return {
        "name": "Intent Copilot API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/healthz",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "copilot.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
