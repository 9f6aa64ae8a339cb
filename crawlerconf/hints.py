"""Derive crawler schema hints from a sample extract of the source table."""
from pathlib import Path

import pandas as pd

from .models import SchemaHint

# pandas dtype name -> Glue/Hive type
GLUE_TYPES = {
    "int8": "tinyint",
    "int16": "smallint",
    "int32": "int",
    "int64": "bigint",
    "Int8": "tinyint",
    "Int16": "smallint",
    "Int32": "int",
    "Int64": "bigint",
    "uint8": "smallint",
    "uint16": "int",
    "uint32": "bigint",
    "float32": "float",
    "float64": "double",
    "Float32": "float",
    "Float64": "double",
    "bool": "boolean",
    "boolean": "boolean",
    "string": "string",
    "object": "string",
    "category": "string",
}


def glue_type(dtype) -> str:
    name = str(dtype)
    if name.startswith("datetime64"):
        return "timestamp"
    if name.startswith("timedelta"):
        return "bigint"
    return GLUE_TYPES.get(name, "string")


def load_sample(path) -> pd.DataFrame:
    """Read a parquet (pyarrow engine) or CSV sample."""
    p = Path(path)
    if p.suffix in {".parquet", ".pq"}:
        return pd.read_parquet(p, engine="pyarrow")
    return pd.read_csv(p)


def schema_hints_from_frame(df: pd.DataFrame, columns=None) -> list[SchemaHint]:
    """One hint per column, in frame order; ``columns`` restricts and orders the output."""
    selected = list(columns) if columns else list(df.columns)
    missing = [c for c in selected if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not in sample: {missing}")
    return [SchemaHint(column_name=str(c), data_type=glue_type(df[c].dtype)) for c in selected]
