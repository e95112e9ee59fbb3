"""Pydantic models for request/response payloads."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ProductSearchHit(BaseModel):
    id: str
    name: str
    brand: Optional[str] = None
    description: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    gender: Optional[str] = None
    price: Optional[float] = None
    mrp: Optional[float] = None
    discount: Optional[float] = None
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    stock: int = 0
    images: List[str] = Field(default_factory=list)
    slug: Optional[str] = None
    relevanceScore: Optional[float] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class ProductListData(BaseModel):
    products: List[ProductSearchHit]
    pagination: Pagination


class ProductListResponse(BaseModel):
    success: bool = True
    data: ProductListData


class SuggestionData(BaseModel):
    suggestions: List[str]


class SuggestionResponse(BaseModel):
    success: bool = True
    data: SuggestionData


class Variant(BaseModel):
    size: str
    color: str
    sku: str
    stock: int = Field(0, ge=0)
    price: Optional[float] = None
    images: List[str] = Field(default_factory=list)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: str
    brand: str
    categories: List[str] = Field(default_factory=list)
    gender: Optional[str] = None
    price: float = Field(..., ge=0)
    mrp: float = Field(..., ge=0)
    discount: float = Field(0, ge=0, le=100)
    images: List[str] = Field(default_factory=list)
    variants: List[Variant] = Field(default_factory=list)
    rating: float = Field(0, ge=0, le=5)
    specs: Dict[str, str] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    isActive: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    categories: Optional[List[str]] = None
    gender: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    mrp: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    images: Optional[List[str]] = None
    variants: Optional[List[Variant]] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    specs: Optional[Dict[str, str]] = None
    tags: Optional[List[str]] = None
    isActive: Optional[bool] = None


class ProductEnvelope(BaseModel):
    success: bool = True
    data: Dict[str, Any]
