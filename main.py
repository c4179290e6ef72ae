import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware
from fastapi.staticfiles import StaticFiles
from core.config import settings
from core.database import init_db
from core.session_store import SessionStore
from routers import auth_router, account_router, verification_router, admin_router, content_router
from models import user, admin_credential, article, calendar_event  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

init_db()

app = FastAPI(title="Membership Site Backend API")

# One store per process; handlers receive it through get_session_store
app.state.session_store = SessionStore(
    capacity=settings.SESSION_CAPACITY,
    ttl=settings.SESSION_TTL_MINUTES * 60,
)

# Respect X-Forwarded-Proto/Host when behind a proxy (Docker/nginx/etc.)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router)
app.include_router(account_router.router)
app.include_router(verification_router.router)
app.include_router(admin_router.router)
app.include_router(content_router.router)

os.makedirs(settings.IMAGES_DIR, exist_ok=True)
app.mount(
    settings.IMAGES_URL_PATH,
    StaticFiles(directory=settings.IMAGES_DIR),
    name="images",
)


@app.get("/")
def root():
    return {"message": "Membership site API ready"}
