from .assembler import (
    DETAIL_COUNT,
    NAME_DISPLAY_LENGTH,
    RANKED_TABLE_SIZE,
    assemble_report,
    delay_status,
    detail_blocks,
    format_days,
    format_money,
)
from .csv_export import ranked_table_csv

__all__ = [
    "DETAIL_COUNT",
    "NAME_DISPLAY_LENGTH",
    "RANKED_TABLE_SIZE",
    "assemble_report",
    "delay_status",
    "detail_blocks",
    "format_days",
    "format_money",
    "ranked_table_csv",
]
