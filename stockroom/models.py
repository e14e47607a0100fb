# stockroom/models.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    id: int = Field(gt=0)
    name: str = ""
    description: str = ""
    category: str = ""
    price: float = Field(default=0, ge=0)
    quantity: int = Field(default=0, ge=0)


class Transaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(gt=0)
    product_id: int = Field(alias="productId")
    amount: int
    date: datetime
