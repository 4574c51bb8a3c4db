"""
Silver Layer Models - Cleansed, standardized and typed data.
Schema: silver
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Date
from sqlalchemy.orm import declarative_base

SilverBase = declarative_base()


class _CuratedMixin:
    """Surrogate key and load timestamp shared by all curated tables."""

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    dwh_create_date = Column(DateTime, default=datetime.now, nullable=False)


class SilverCrmCustInfo(_CuratedMixin, SilverBase):
    """Customers - one row per cst_id, latest record wins."""

    __tablename__ = "crm_cust_info"
    __table_args__ = {"schema": "silver"}

    cst_id = Column(Integer, nullable=False)
    cst_key = Column(String)
    cst_firstname = Column(String)
    cst_lastname = Column(String)
    cst_marital_status = Column(String, nullable=False)
    cst_gndr = Column(String, nullable=False)
    cst_create_date = Column(Date)

    def __repr__(self):
        return f"<SilverCrmCustInfo(cst_id={self.cst_id}, cst_key={self.cst_key})>"


class SilverCrmPrdInfo(_CuratedMixin, SilverBase):
    """Product versions with a derived validity range."""

    __tablename__ = "crm_prd_info"
    __table_args__ = {"schema": "silver"}

    prd_id = Column(Integer)
    cat_id = Column(String)
    prd_key = Column(String)
    prd_nm = Column(String)
    prd_cost = Column(Integer, nullable=False)
    prd_line = Column(String, nullable=False)
    prd_start_dt = Column(Date)
    prd_end_dt = Column(Date)

    def __repr__(self):
        return f"<SilverCrmPrdInfo(prd_key={self.prd_key}, start={self.prd_start_dt})>"


class SilverCrmSalesDetails(_CuratedMixin, SilverBase):
    """Sales order lines with repaired amounts."""

    __tablename__ = "crm_sales_details"
    __table_args__ = {"schema": "silver"}

    sls_ord_num = Column(String)
    sls_prd_key = Column(String)
    sls_cust_id = Column(Integer)
    sls_order_dt = Column(Date)
    sls_ship_dt = Column(Date)
    sls_due_dt = Column(Date)
    sls_sales = Column(Integer)
    sls_quantity = Column(Integer)
    sls_price = Column(Integer)

    def __repr__(self):
        return f"<SilverCrmSalesDetails(order={self.sls_ord_num}, prd={self.sls_prd_key})>"


class SilverErpCustAz12(_CuratedMixin, SilverBase):
    """Customer demographics keyed by the CRM customer key."""

    __tablename__ = "erp_cust_az12"
    __table_args__ = {"schema": "silver"}

    cid = Column(String)
    bdate = Column(Date)
    gen = Column(String, nullable=False)

    def __repr__(self):
        return f"<SilverErpCustAz12(cid={self.cid})>"


class SilverErpLocA101(_CuratedMixin, SilverBase):
    """Customer country keyed by the CRM customer key."""

    __tablename__ = "erp_loc_a101"
    __table_args__ = {"schema": "silver"}

    cid = Column(String)
    cntry = Column(String, nullable=False)

    def __repr__(self):
        return f"<SilverErpLocA101(cid={self.cid}, cntry={self.cntry})>"


class SilverErpPxCatG1v2(_CuratedMixin, SilverBase):
    """Product category reference."""

    __tablename__ = "erp_px_cat_g1v2"
    __table_args__ = {"schema": "silver"}

    id = Column(String)
    cat = Column(String)
    subcat = Column(String)
    maintenance = Column(String)

    def __repr__(self):
        return f"<SilverErpPxCatG1v2(id={self.id})>"


# Target table name -> model, in load order
SILVER_TABLES = {
    "crm_cust_info": SilverCrmCustInfo,
    "crm_prd_info": SilverCrmPrdInfo,
    "crm_sales_details": SilverCrmSalesDetails,
    "erp_cust_az12": SilverErpCustAz12,
    "erp_loc_a101": SilverErpLocA101,
    "erp_px_cat_g1v2": SilverErpPxCatG1v2,
}

METADATA_COLUMNS = ("row_id", "dwh_create_date")


def business_columns(model) -> list:
    """Typed output columns of a curated model, in declaration order."""
    return [c.name for c in model.__table__.columns if c.name not in METADATA_COLUMNS]
