import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from .config import get_settings
from .db import Base, engine
from .errors import ApiError, api_error_handler
from .routes import auth, category, product, ui

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("storefront")

# Create tables if not existing. Schema changes go through migration/.
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Ecommerce Storefront")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s %.1f ms", request.method, request.url.path, response.status_code, elapsed)
    return response


app.add_exception_handler(ApiError, api_error_handler)

app.include_router(auth.router)
app.include_router(category.router)
app.include_router(product.router)
app.include_router(ui.router)

app.mount("/static", StaticFiles(directory=os.path.join(os.path.dirname(__file__), "static")), name="static")


@app.get("/", response_class=HTMLResponse)
async def root():
    return "<h1>Welcome to ecommerce app</h1>"


@app.get("/health")
async def health():
    return {"status": "ok"}


def main():
    import uvicorn

    settings = get_settings()
    logger.info("Server running on %s mode on %s", settings.dev_mode, settings.port)
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
