from pydantic import BaseModel, ConfigDict, Field, StrictInt
from typing import Optional

# ids are positive and fit a 64-bit INTEGER column
MAX_ID = 2**63 - 1


class Schema(BaseModel):
    # JSON uses the camelCase aliases, Python code the field names
    model_config = ConfigDict(populate_by_name=True)


class NewUser(Schema):
    username: str
    password: str
    name: Optional[str] = None
    email: Optional[str] = None

class User(Schema):
    id: int
    username: str
    password: str
    name: str = ""
    email: str = ""

class UserOut(Schema):
    id: int
    username: str
    name: str
    email: str

class RegisterRequest(Schema):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=6, max_length=72)
    name: Optional[str] = Field(None, max_length=120)
    email: Optional[str] = Field(None, max_length=254)

class LoginRequest(Schema):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class Metrics(Schema):
    materials: float = Field(..., ge=0, le=100)
    carbon_footprint: float = Field(..., ge=0, le=100, alias="carbonFootprint")
    recyclability: float = Field(..., ge=0, le=100)

class Impact(Schema):
    co2: str
    water: str
    packaging: str
    land: str

class Certification(Schema):
    name: str
    color: str

class Product(Schema):
    id: int
    name: str
    brand: str
    category: str
    barcode: str
    eco_score: str = Field(..., alias="ecoScore")
    metrics: Metrics
    impact: Impact
    ingredients: str
    certifications: list[Certification] = []
    production: str
    packaging_details: str

class Alternative(Schema):
    id: int
    name: str
    eco_score: str = Field(..., alias="ecoScore")
    feature: str


class NewFavorite(Schema):
    user_id: Optional[int] = Field(None, alias="userId")
    product_id: Optional[int] = Field(None, alias="productId")
    product_data: dict = Field(..., alias="productData")
    created_at: str = Field(..., alias="createdAt")

class Favorite(NewFavorite):
    id: int

class FavoriteRequest(Schema):
    product_id: StrictInt = Field(..., alias="productId", ge=1, le=MAX_ID)


class NewSearchHistory(Schema):
    user_id: Optional[int] = Field(None, alias="userId")
    query: str
    created_at: str = Field(..., alias="createdAt")

class SearchHistory(NewSearchHistory):
    id: int
