"""
Storage layer for the warehouse: engine helpers and layer models.
"""
