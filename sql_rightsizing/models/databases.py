"""
Database inventory models.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import BillingModel

DTU_EDITIONS = {"basic", "standard", "premium"}


class DatabaseProfile(BaseModel):
    """Identity and static configuration of one database"""

    model_config = ConfigDict(frozen=True)

    server_name: str = Field(..., min_length=1)
    database_name: str = Field(..., min_length=1)
    edition: str
    sku: str
    capacity: int = Field(ge=0, description="DTU count or vCore count")
    billing_model: BillingModel
    max_size_gb: float = Field(default=0.0, ge=0)
    elastic_pool: Optional[str] = None
    is_serverless: bool = False
    is_hyperscale: bool = False

    @field_validator("elastic_pool", mode="before")
    @classmethod
    def blank_pool_is_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @property
    def key(self) -> str:
        return f"{self.server_name}/{self.database_name}"

    @property
    def in_elastic_pool(self) -> bool:
        return self.elastic_pool is not None

    @classmethod
    def from_inventory(
        cls,
        server_name: str,
        database_name: str,
        edition: str,
        sku: str,
        capacity: int,
        max_size_gb: float = 0.0,
        elastic_pool: Optional[str] = None,
    ) -> "DatabaseProfile":
        """Build a profile, deriving billing model and tier flags from edition/SKU"""
        edition_key = (edition or "").strip().lower()
        sku_key = (sku or "").strip().upper()

        billing_model = (
            BillingModel.DTU if edition_key in DTU_EDITIONS else BillingModel.VCORE
        )
        is_serverless = sku_key.startswith("GP_S_") or "serverless" in edition_key
        is_hyperscale = edition_key == "hyperscale" or sku_key.startswith("HS_")

        return cls(
            server_name=server_name,
            database_name=database_name,
            edition=edition,
            sku=sku,
            capacity=capacity,
            billing_model=billing_model,
            max_size_gb=max_size_gb,
            elastic_pool=elastic_pool,
            is_serverless=is_serverless,
            is_hyperscale=is_hyperscale,
        )
