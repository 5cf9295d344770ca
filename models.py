from sqlalchemy import Column, Integer, String, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    name = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")

    favorites = relationship("Favorite", back_populates="user")
    searches = relationship("SearchHistory", back_populates="user")

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    brand = Column(String, nullable=False)
    category = Column(String, nullable=False)
    barcode = Column(String, index=True, nullable=False)
    eco_score = Column(String, nullable=False)
    metrics = Column(JSON, nullable=False)
    impact = Column(JSON, nullable=False)
    ingredients = Column(Text, nullable=False)
    certifications = Column(JSON, nullable=False)
    production = Column(Text, nullable=False)
    packaging_details = Column(Text, nullable=False)
    alternatives = Column(JSON, nullable=False, default=list)


# product_id is a plain column: the favorite keeps a snapshot and outlives the product
class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    product_id = Column(Integer, nullable=True)
    product_data = Column(JSON, nullable=False)
    created_at = Column(String, nullable=False)

    user = relationship("User", back_populates="favorites")


class SearchHistory(Base):
    __tablename__ = "search_history"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    query = Column(String, nullable=False)
    created_at = Column(String, nullable=False, index=True)

    user = relationship("User", back_populates="searches")
