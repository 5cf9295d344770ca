import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

import models
import schemas
import seed
from database import Base, make_engine, make_session_factory
from errors import DuplicateUsername

logger = logging.getLogger(__name__)


def seed_products() -> list[schemas.Product]:
    return [schemas.Product.model_validate(p) for p in seed.PRODUCTS]


class Storage(ABC):
    """Everything the API layer reads and writes goes through one of these."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[schemas.User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[schemas.User]: ...

    @abstractmethod
    def create_user(self, candidate: schemas.NewUser) -> schemas.User: ...

    @abstractmethod
    def get_product_by_barcode(self, barcode: str) -> Optional[schemas.Product]: ...

    @abstractmethod
    def search_products(self, query: str) -> list[schemas.Product]: ...

    @abstractmethod
    def get_product_by_id(self, product_id: int) -> Optional[schemas.Product]: ...

    @abstractmethod
    def get_alternatives(self, product_id: int) -> list[schemas.Alternative]: ...

    @abstractmethod
    def add_favorite(self, candidate: schemas.NewFavorite) -> schemas.Favorite: ...

    @abstractmethod
    def get_favorites_by_user_id(self, user_id: int) -> list[schemas.Favorite]: ...

    @abstractmethod
    def remove_favorite(self, favorite_id: int) -> bool: ...

    @abstractmethod
    def add_search_history(self, candidate: schemas.NewSearchHistory) -> schemas.SearchHistory: ...

    @abstractmethod
    def get_recent_searches(self, user_id: int, limit: int) -> list[schemas.SearchHistory]: ...


class MemStorage(Storage):
    """
    Process-local store. Nothing survives a restart.

    Ids come from per-entity counters that only move forward, so a removed
    favorite's id is never handed out again.
    """

    def __init__(self, products=None, alternatives=None):
        self._lock = threading.Lock()
        self._users: dict[int, schemas.User] = {}
        self._products: dict[int, schemas.Product] = {}
        self._favorites: dict[int, schemas.Favorite] = {}
        self._searches: dict[int, schemas.SearchHistory] = {}
        self._alternatives = {}

        for product in (seed_products() if products is None else products):
            self._products[product.id] = product
        source = seed.ALTERNATIVES if alternatives is None else alternatives
        for product_id, items in source.items():
            self._alternatives[product_id] = [schemas.Alternative.model_validate(a) for a in items]

        self._next_user_id = 1
        self._next_favorite_id = 1
        self._next_search_id = 1

    # users

    def get_user(self, user_id):
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_username(self, username):
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    def create_user(self, candidate):
        with self._lock:
            if any(u.username == candidate.username for u in self._users.values()):
                raise DuplicateUsername()
            user = schemas.User(
                id=self._next_user_id,
                username=candidate.username,
                password=candidate.password,
                name=candidate.name or "",
                email=candidate.email or "",
            )
            self._next_user_id += 1
            self._users[user.id] = user
            return user

    # products

    def get_product_by_barcode(self, barcode):
        with self._lock:
            return next((p for p in self._products.values() if p.barcode == barcode), None)

    def search_products(self, query):
        lower_query = query.lower()
        with self._lock:
            return [
                p for p in self._products.values()
                if lower_query in p.name.lower()
                or lower_query in p.brand.lower()
                or lower_query in p.category.lower()
                or query in p.barcode
            ]

    def get_product_by_id(self, product_id):
        with self._lock:
            return self._products.get(product_id)

    def get_alternatives(self, product_id):
        with self._lock:
            return list(self._alternatives.get(product_id, []))

    # favorites

    def add_favorite(self, candidate):
        with self._lock:
            favorite = schemas.Favorite(id=self._next_favorite_id, **candidate.model_dump())
            self._next_favorite_id += 1
            self._favorites[favorite.id] = favorite
            return favorite

    def get_favorites_by_user_id(self, user_id):
        with self._lock:
            return [f for f in self._favorites.values() if f.user_id == user_id]

    def remove_favorite(self, favorite_id):
        with self._lock:
            return self._favorites.pop(favorite_id, None) is not None

    # search history

    def add_search_history(self, candidate):
        with self._lock:
            entry = schemas.SearchHistory(id=self._next_search_id, **candidate.model_dump())
            self._next_search_id += 1
            self._searches[entry.id] = entry
            return entry

    def get_recent_searches(self, user_id, limit):
        with self._lock:
            entries = [s for s in self._searches.values() if s.user_id == user_id]
        entries.sort(key=lambda s: (s.created_at, s.id), reverse=True)
        return entries[:max(limit, 0)]


class DatabaseStorage(Storage):
    """Same contract as MemStorage, kept in a SQL database through SQLAlchemy."""

    def __init__(self, url: str):
        self.engine = make_engine(url)
        self.SessionLocal = make_session_factory(self.engine)
        Base.metadata.create_all(bind=self.engine)
        self._seed()

    def _seed(self):
        with self.SessionLocal() as db:
            if db.query(models.Product).first():
                return
            for product in seed_products():
                db.add(models.Product(
                    id=product.id,
                    name=product.name,
                    brand=product.brand,
                    category=product.category,
                    barcode=product.barcode,
                    eco_score=product.eco_score,
                    metrics=product.metrics.model_dump(by_alias=True),
                    impact=product.impact.model_dump(),
                    ingredients=product.ingredients,
                    certifications=[c.model_dump() for c in product.certifications],
                    production=product.production,
                    packaging_details=product.packaging_details,
                    alternatives=seed.ALTERNATIVES.get(product.id, []),
                ))
            db.commit()
            logger.info("Seeded %d products", len(seed.PRODUCTS))

    @staticmethod
    def _user(row):
        return schemas.User(id=row.id, username=row.username, password=row.password,
                            name=row.name or "", email=row.email or "")

    @staticmethod
    def _product(row):
        return schemas.Product(
            id=row.id,
            name=row.name,
            brand=row.brand,
            category=row.category,
            barcode=row.barcode,
            eco_score=row.eco_score,
            metrics=row.metrics,
            impact=row.impact,
            ingredients=row.ingredients,
            certifications=row.certifications,
            production=row.production,
            packaging_details=row.packaging_details,
        )

    @staticmethod
    def _favorite(row):
        return schemas.Favorite(id=row.id, user_id=row.user_id, product_id=row.product_id,
                                product_data=row.product_data, created_at=row.created_at)

    @staticmethod
    def _search(row):
        return schemas.SearchHistory(id=row.id, user_id=row.user_id, query=row.query,
                                     created_at=row.created_at)

    def get_user(self, user_id):
        with self.SessionLocal() as db:
            row = db.query(models.User).filter(models.User.id == user_id).first()
            return self._user(row) if row else None

    def get_user_by_username(self, username):
        with self.SessionLocal() as db:
            row = db.query(models.User).filter(models.User.username == username).first()
            return self._user(row) if row else None

    def create_user(self, candidate):
        with self.SessionLocal() as db:
            existing_user = db.query(models.User).filter(models.User.username == candidate.username).first()
            if existing_user:
                raise DuplicateUsername()

            user = models.User(username=candidate.username, password=candidate.password,
                               name=candidate.name or "", email=candidate.email or "")
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                # lost a race with a concurrent registration
                db.rollback()
                raise DuplicateUsername()
            db.refresh(user)
            return self._user(user)

    def get_product_by_barcode(self, barcode):
        with self.SessionLocal() as db:
            row = (db.query(models.Product)
                   .filter(models.Product.barcode == barcode)
                   .order_by(models.Product.id)
                   .first())
            return self._product(row) if row else None

    def search_products(self, query):
        with self.SessionLocal() as db:
            rows = db.query(models.Product).filter(or_(
                models.Product.name.icontains(query, autoescape=True),
                models.Product.brand.icontains(query, autoescape=True),
                models.Product.category.icontains(query, autoescape=True),
                models.Product.barcode.contains(query, autoescape=True),
            )).order_by(models.Product.id).all()
            return [self._product(row) for row in rows]

    def get_product_by_id(self, product_id):
        with self.SessionLocal() as db:
            row = db.query(models.Product).filter(models.Product.id == product_id).first()
            return self._product(row) if row else None

    def get_alternatives(self, product_id):
        with self.SessionLocal() as db:
            row = db.query(models.Product).filter(models.Product.id == product_id).first()
            if not row:
                return []
            return [schemas.Alternative.model_validate(a) for a in row.alternatives or []]

    def add_favorite(self, candidate):
        with self.SessionLocal() as db:
            favorite = models.Favorite(user_id=candidate.user_id, product_id=candidate.product_id,
                                       product_data=candidate.product_data, created_at=candidate.created_at)
            db.add(favorite)
            db.commit()
            db.refresh(favorite)
            return self._favorite(favorite)

    def get_favorites_by_user_id(self, user_id):
        with self.SessionLocal() as db:
            rows = (db.query(models.Favorite)
                    .filter(models.Favorite.user_id == user_id)
                    .order_by(models.Favorite.id)
                    .all())
            return [self._favorite(row) for row in rows]

    def remove_favorite(self, favorite_id):
        with self.SessionLocal() as db:
            favorite = db.query(models.Favorite).filter(models.Favorite.id == favorite_id).first()
            if not favorite:
                return False
            db.delete(favorite)
            db.commit()
            return True

    def add_search_history(self, candidate):
        with self.SessionLocal() as db:
            entry = models.SearchHistory(user_id=candidate.user_id, query=candidate.query,
                                         created_at=candidate.created_at)
            db.add(entry)
            db.commit()
            db.refresh(entry)
            return self._search(entry)

    def get_recent_searches(self, user_id, limit):
        with self.SessionLocal() as db:
            rows = (db.query(models.SearchHistory)
                    .filter(models.SearchHistory.user_id == user_id)
                    .order_by(models.SearchHistory.created_at.desc(), models.SearchHistory.id.desc())
                    .limit(max(limit, 0))
                    .all())
            return [self._search(row) for row in rows]
