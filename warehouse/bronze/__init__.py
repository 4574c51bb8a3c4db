from warehouse.bronze.loader import (
    run_bronze_load,
    load_csv_to_bronze,
    read_source_csv,
    SOURCE_FILES,
)

__all__ = [
    "run_bronze_load",
    "load_csv_to_bronze",
    "read_source_csv",
    "SOURCE_FILES",
]
