from fastapi import FastAPI, APIRouter, Depends, Path, Query, Response, Cookie, status
from datetime import datetime, timezone
from typing import Optional
import logging

import config
import schemas
from auth import (SESSION_COOKIE, SessionStore, authenticate, get_current_user, get_sessions,
                  get_storage, register, require_user)
from errors import BadRequest, InvalidCredentials, NotFound, install_handlers
from storage import DatabaseStorage, MemStorage, Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

MAX_HISTORY = 100


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def set_session_cookie(response: Response, session_token: str):
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_token,
        max_age=config.SESSION_TTL,
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
    )


def with_live_product(storage: Storage, favorite: schemas.Favorite) -> schemas.Favorite:
    # current product data wins; the snapshot covers products that are gone
    if favorite.product_id is None:
        return favorite
    product = storage.get_product_by_id(favorite.product_id)
    if product is None:
        return favorite
    return favorite.model_copy(update={"product_data": product.model_dump(by_alias=True)})


def record_search(storage: Storage, user_id: int, query: str):
    try:
        storage.add_search_history(schemas.NewSearchHistory(user_id=user_id, query=query, created_at=now_iso()))
    except Exception:
        # search results still go out
        logger.exception("Failed to add search to history for user %d", user_id)


@router.get("/health")
def health():
    return {"status": "ok"}


# Auth

@router.post("/register", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def register_user(body: schemas.RegisterRequest,
                  response: Response,
                  session_token: Optional[str] = Cookie(None),
                  storage: Storage = Depends(get_storage),
                  sessions: SessionStore = Depends(get_sessions)):
    user = register(storage, body)

    sessions.destroy(session_token)
    set_session_cookie(response, sessions.create(user.id))
    return user


@router.post("/login", response_model=schemas.UserOut)
def login_user(body: schemas.LoginRequest,
               response: Response,
               session_token: Optional[str] = Cookie(None),
               storage: Storage = Depends(get_storage),
               sessions: SessionStore = Depends(get_sessions)):
    try:
        user = authenticate(storage, body.username, body.password)
    except InvalidCredentials:
        logger.warning("Failed login attempt")
        raise

    # logging in again replaces the previous session
    sessions.destroy(session_token)
    set_session_cookie(response, sessions.create(user.id))
    logger.info("User %d logged in", user.id)
    return user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout_user(session_token: Optional[str] = Cookie(None),
                sessions: SessionStore = Depends(get_sessions)):
    if sessions.destroy(session_token):
        logger.info("Session closed")
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(key=SESSION_COOKIE)
    return response


@router.get("/user", response_model=schemas.UserOut)
def read_current_user(current_user: schemas.User = Depends(require_user)):
    return current_user


# Products

@router.get("/products/barcode/{barcode}", response_model=schemas.Product)
def product_by_barcode(barcode: str, storage: Storage = Depends(get_storage)):
    product = storage.get_product_by_barcode(barcode)
    if not product:
        raise NotFound("Product not found")
    return product


@router.get("/products/search", response_model=list[schemas.Product])
def search_products(q: Optional[str] = None,
                    user_id: Optional[str] = Query(None, alias="userId"),
                    storage: Storage = Depends(get_storage),
                    current_user: Optional[schemas.User] = Depends(get_current_user)):
    if not q or not q.strip():
        raise BadRequest("Search query is required")

    products = storage.search_products(q.strip())

    # userId is only a legacy hint; history always goes to the session's user
    if current_user:
        record_search(storage, current_user.id, q)
    elif user_id is not None:
        logger.debug("Ignoring userId=%s on anonymous search", user_id)

    return products


@router.get("/products/{product_id}", response_model=schemas.Product)
def product_by_id(product_id: int = Path(..., ge=1, le=schemas.MAX_ID), storage: Storage = Depends(get_storage)):
    product = storage.get_product_by_id(product_id)
    if not product:
        raise NotFound("Product not found")
    return product


@router.get("/products/{product_id}/alternatives", response_model=list[schemas.Alternative])
def product_alternatives(product_id: int = Path(..., ge=1, le=schemas.MAX_ID), storage: Storage = Depends(get_storage)):
    if not storage.get_product_by_id(product_id):
        raise NotFound("Product not found")
    return storage.get_alternatives(product_id)


# Favorites

@router.post("/favorites", response_model=schemas.Favorite, status_code=status.HTTP_201_CREATED)
def add_favorite(body: schemas.FavoriteRequest,
                 storage: Storage = Depends(get_storage),
                 current_user: schemas.User = Depends(require_user)):
    product = storage.get_product_by_id(body.product_id)
    if not product:
        raise NotFound("Product not found")

    favorite = storage.add_favorite(schemas.NewFavorite(
        user_id=current_user.id,
        product_id=product.id,
        product_data=product.model_dump(by_alias=True),
        created_at=now_iso(),
    ))
    return favorite


@router.get("/favorites", response_model=list[schemas.Favorite])
def list_favorites(storage: Storage = Depends(get_storage),
                   current_user: schemas.User = Depends(require_user)):
    return [with_live_product(storage, f) for f in storage.get_favorites_by_user_id(current_user.id)]


@router.delete("/favorites/{favorite_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(favorite_id: int = Path(..., ge=1, le=schemas.MAX_ID),
                    storage: Storage = Depends(get_storage),
                    current_user: schemas.User = Depends(require_user)):
    # someone else's favorite looks exactly like a missing one
    owned = any(f.id == favorite_id for f in storage.get_favorites_by_user_id(current_user.id))
    if not owned or not storage.remove_favorite(favorite_id):
        raise NotFound("Favorite not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Search history

@router.get("/search-history", response_model=list[schemas.SearchHistory])
def recent_searches(limit: int = Query(10),
                    storage: Storage = Depends(get_storage),
                    current_user: schemas.User = Depends(require_user)):
    # out-of-range limits are clamped, not rejected
    limit = max(1, min(limit, MAX_HISTORY))
    return storage.get_recent_searches(current_user.id, limit)


def default_storage() -> Storage:
    if config.DATABASE_URL:
        logger.info("Using database storage")
        return DatabaseStorage(config.DATABASE_URL)
    logger.info("Using in-memory storage")
    return MemStorage()


def create_app(storage: Optional[Storage] = None, sessions: Optional[SessionStore] = None) -> FastAPI:
    app = FastAPI(title="EcoScan")
    app.state.storage = storage if storage is not None else default_storage()
    app.state.sessions = sessions if sessions is not None else SessionStore()
    install_handlers(app)
    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("main:create_app", factory=True, host=config.HOST, port=config.PORT)
