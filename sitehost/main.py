from fastapi import FastAPI

from sitehost.config import AppConfig, load_config
from sitehost.features.accounts.api import router as accounts_router
from sitehost.features.public.api import router as public_router
from sitehost.features.sites.api import router as sites_router
from sitehost.infra.db import DbConfig, connect, migrate
from sitehost.infra.object_store import LocalObjectStore
from sitehost.logging_config import setup_logging
from sitehost.web.health import router as health_router


def create_app(cfg: AppConfig | None = None) -> FastAPI:
    cfg = cfg or load_config()
    setup_logging(cfg.log_level)
    conn = connect(DbConfig(path=cfg.db_path))
    migrate(conn)

    app = FastAPI(title="Static Site Hosting", version="0.1.0")
    app.state.cfg = cfg
    app.state.db = conn
    app.state.store = LocalObjectStore(cfg.objects_dir)
    app.include_router(health_router)
    app.include_router(accounts_router)
    app.include_router(sites_router)
    app.include_router(public_router)
    return app
