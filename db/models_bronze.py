"""
Bronze Layer Models - Raw source extracts, no transformations applied.
Schema: bronze

Every business column is stored as text exactly as it arrived in the source
file; typing happens in the Silver layer.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base

BronzeBase = declarative_base()


class _RawMixin:
    """Surrogate key and load metadata shared by all raw tables."""

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    source_file = Column(String)
    loaded_at = Column(DateTime, default=datetime.now, nullable=False)


class RawCrmCustInfo(_RawMixin, BronzeBase):
    """CRM customer master extract."""

    __tablename__ = "crm_cust_info"
    __table_args__ = {"schema": "bronze"}

    cst_id = Column(String)
    cst_key = Column(String)
    cst_firstname = Column(String)
    cst_lastname = Column(String)
    cst_marital_status = Column(String)
    cst_gndr = Column(String)
    cst_create_date = Column(String)

    def __repr__(self):
        return f"<RawCrmCustInfo(row_id={self.row_id}, cst_id={self.cst_id})>"


class RawCrmPrdInfo(_RawMixin, BronzeBase):
    """CRM product extract, one row per product version."""

    __tablename__ = "crm_prd_info"
    __table_args__ = {"schema": "bronze"}

    prd_id = Column(String)
    prd_key = Column(String)
    prd_nm = Column(String)
    prd_cost = Column(String)
    prd_line = Column(String)
    prd_start_dt = Column(String)
    prd_end_dt = Column(String)

    def __repr__(self):
        return f"<RawCrmPrdInfo(row_id={self.row_id}, prd_key={self.prd_key})>"


class RawCrmSalesDetails(_RawMixin, BronzeBase):
    """CRM sales order lines. Dates arrive as YYYYMMDD integers."""

    __tablename__ = "crm_sales_details"
    __table_args__ = {"schema": "bronze"}

    sls_ord_num = Column(String)
    sls_prd_key = Column(String)
    sls_cust_id = Column(String)
    sls_order_dt = Column(String)
    sls_ship_dt = Column(String)
    sls_due_dt = Column(String)
    sls_sales = Column(String)
    sls_quantity = Column(String)
    sls_price = Column(String)

    def __repr__(self):
        return f"<RawCrmSalesDetails(row_id={self.row_id}, order={self.sls_ord_num})>"


class RawErpCustAz12(_RawMixin, BronzeBase):
    """ERP customer demographics."""

    __tablename__ = "erp_cust_az12"
    __table_args__ = {"schema": "bronze"}

    cid = Column(String)
    bdate = Column(String)
    gen = Column(String)

    def __repr__(self):
        return f"<RawErpCustAz12(row_id={self.row_id}, cid={self.cid})>"


class RawErpLocA101(_RawMixin, BronzeBase):
    """ERP customer locations."""

    __tablename__ = "erp_loc_a101"
    __table_args__ = {"schema": "bronze"}

    cid = Column(String)
    cntry = Column(String)

    def __repr__(self):
        return f"<RawErpLocA101(row_id={self.row_id}, cid={self.cid})>"


class RawErpPxCatG1v2(_RawMixin, BronzeBase):
    """ERP product category reference."""

    __tablename__ = "erp_px_cat_g1v2"
    __table_args__ = {"schema": "bronze"}

    id = Column(String)
    cat = Column(String)
    subcat = Column(String)
    maintenance = Column(String)

    def __repr__(self):
        return f"<RawErpPxCatG1v2(row_id={self.row_id}, id={self.id})>"


# Source table name -> model, in load order
BRONZE_TABLES = {
    "crm_cust_info": RawCrmCustInfo,
    "crm_prd_info": RawCrmPrdInfo,
    "crm_sales_details": RawCrmSalesDetails,
    "erp_cust_az12": RawErpCustAz12,
    "erp_loc_a101": RawErpLocA101,
    "erp_px_cat_g1v2": RawErpPxCatG1v2,
}

# Columns that carry no source data
METADATA_COLUMNS = ("row_id", "source_file", "loaded_at")


def business_columns(model) -> list:
    """Source columns of a raw model, in declaration order."""
    return [c.name for c in model.__table__.columns if c.name not in METADATA_COLUMNS]
