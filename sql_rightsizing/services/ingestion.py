"""
Data ingestion service for database inventory and hourly metric exports.
"""

import math
import random
import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..models import DatabaseProfile, MetricBundle, MetricKind, Sample
from ..utils.logging import get_logger

logger = get_logger(__name__)

DatabaseKey = Tuple[str, str]

INVENTORY_COLUMNS = {
    "server_name": ["server_name", "servername", "server"],
    "database_name": ["database_name", "databasename", "database", "db_name"],
    "edition": ["edition", "service_tier", "tier"],
    "sku": ["sku", "sku_name", "service_objective", "current_service_objective_name"],
    "capacity": ["capacity", "capacity_units", "dtu", "vcores"],
    "elastic_pool": ["elastic_pool", "elastic_pool_name", "pool"],
    "max_size": ["max_size", "max_size_bytes", "max_size_gb"],
}

METRIC_COLUMNS = {
    "server_name": ["server_name", "servername", "server"],
    "database_name": ["database_name", "databasename", "database", "db_name"],
    "timestamp": ["timestamp", "time", "time_generated", "end_time"],
    "value_percent": ["value_percent", "metric_value", "percent", "average_percent"],
    "nominal_value": ["nominal_value", "value", "nominal", "absolute_value"],
}

# Sizes above this are taken to be bytes, below to be GB
BYTES_THRESHOLD = 1_000_000


def _normalize(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", str(name).lower())


def _map_columns(columns, mapping: Dict[str, List[str]]) -> Dict[str, str]:
    """Resolve source column names for each canonical column"""
    normalized = {_normalize(col): col for col in columns}
    resolved = {}
    for canonical, aliases in mapping.items():
        for alias in aliases:
            source = normalized.get(_normalize(alias))
            if source is not None:
                resolved[source] = canonical
                break
    return resolved


def _max_size_gb(raw) -> float:
    if raw is None or pd.isna(raw) or raw == "":
        return 0.0
    value = float(raw)
    if value > BYTES_THRESHOLD:
        return value / (1024 ** 3)
    return value


class DataIngestionService:
    """Service for ingesting and normalizing inventory and metric exports"""

    def __init__(self, data_dir: str = "data"):
        self.data_dir = Path(data_dir)

    def ingest_inventory_data(self, csv_file_path: str) -> List[DatabaseProfile]:
        """Ingest the database inventory; a missing file is fatal"""
        logger.info("Ingesting inventory data", file_path=csv_file_path)

        if not Path(csv_file_path).exists():
            logger.error("Inventory file not found", file_path=csv_file_path)
            raise FileNotFoundError(f"Inventory file not found: {csv_file_path}")

        df = pd.read_csv(csv_file_path, dtype=str, keep_default_na=False)
        column_mapping = _map_columns(df.columns, INVENTORY_COLUMNS)
        df = df.rename(columns=column_mapping)
        logger.debug("Column mapping", mapping=column_mapping)

        missing = [
            col
            for col in ("server_name", "database_name", "edition", "sku", "capacity")
            if col not in df.columns
        ]
        if missing:
            raise ValueError(f"Inventory file is missing required columns: {missing}")

        profiles = []
        seen = set()

        for index, row in df.iterrows():
            try:
                profile = DatabaseProfile.from_inventory(
                    server_name=row["server_name"].strip(),
                    database_name=row["database_name"].strip(),
                    edition=row["edition"].strip(),
                    sku=row["sku"].strip(),
                    capacity=int(float(row["capacity"])),
                    max_size_gb=_max_size_gb(row.get("max_size")),
                    elastic_pool=row.get("elastic_pool"),
                )
            except Exception as e:
                logger.warning(
                    "Failed to parse inventory record", row_index=index, error=str(e)
                )
                continue

            if profile.key in seen:
                logger.warning("Duplicate inventory record skipped", database=profile.key)
                continue

            seen.add(profile.key)
            profiles.append(profile)

        logger.info("Inventory data ingested", total_databases=len(profiles))
        return profiles

    def ingest_metric_file(
        self, csv_file_path: Path
    ) -> Dict[DatabaseKey, List[Sample]]:
        """Ingest one metric export, grouped by database"""
        df = pd.read_csv(csv_file_path)
        df = df.rename(columns=_map_columns(df.columns, METRIC_COLUMNS))

        required = ["server_name", "database_name", "timestamp"]
        missing = [col for col in required if col not in df.columns]
        if missing:
            raise ValueError(f"{csv_file_path} is missing required columns: {missing}")

        for column in ("value_percent", "nominal_value"):
            if column not in df.columns:
                df[column] = 0.0
            df[column] = pd.to_numeric(df[column], errors="coerce")

        df["timestamp"] = pd.to_datetime(df["timestamp"], errors="coerce")

        total = len(df)
        df = df.dropna(subset=["server_name", "database_name", "timestamp"])
        df = df.dropna(subset=["value_percent", "nominal_value"], how="all")
        df[["value_percent", "nominal_value"]] = df[
            ["value_percent", "nominal_value"]
        ].fillna(0.0)

        dropped = total - len(df)
        if dropped:
            logger.warning(
                "Skipped malformed metric rows", file=str(csv_file_path), rows=dropped
            )

        grouped: Dict[DatabaseKey, List[Sample]] = {}
        for row in df.itertuples(index=False):
            key = (str(row.server_name).strip(), str(row.database_name).strip())
            grouped.setdefault(key, []).append(
                Sample(
                    timestamp=row.timestamp.to_pydatetime(),
                    value_percent=float(row.value_percent),
                    nominal_value=float(row.nominal_value),
                )
            )
        return grouped

    def ingest_metrics_data(
        self, metrics_dir: str
    ) -> Dict[DatabaseKey, Dict[MetricKind, List[Sample]]]:
        """Ingest every metric kind from a directory; missing files degrade to empty"""
        logger.info("Ingesting metrics data", metrics_dir=metrics_dir)
        metrics_path = Path(metrics_dir)
        series: Dict[DatabaseKey, Dict[MetricKind, List[Sample]]] = {}

        for kind in MetricKind:
            csv_file = metrics_path / f"{kind.value}.csv"
            if not csv_file.exists():
                logger.warning(
                    "Metric file missing, treating series as empty",
                    metric=kind.value,
                    file=str(csv_file),
                )
                continue

            try:
                grouped = self.ingest_metric_file(csv_file)
            except Exception as e:
                logger.warning(
                    "Failed to ingest metric file, treating series as empty",
                    metric=kind.value,
                    file=str(csv_file),
                    error=str(e),
                )
                continue

            for key, samples in grouped.items():
                series.setdefault(key, {})[kind] = samples

            logger.info(
                "Metric file ingested",
                metric=kind.value,
                databases=len(grouped),
                samples=sum(len(s) for s in grouped.values()),
            )

        return series

    def build_bundles(
        self,
        profiles: List[DatabaseProfile],
        series: Dict[DatabaseKey, Dict[MetricKind, List[Sample]]],
    ) -> Dict[str, MetricBundle]:
        """One immutable bundle per inventoried database, keyed by profile key"""
        bundles = {}
        for profile in profiles:
            db_series = series.get((profile.server_name, profile.database_name), {})
            bundles[profile.key] = MetricBundle.from_series(db_series)

        orphaned = set(series) - {(p.server_name, p.database_name) for p in profiles}
        if orphaned:
            logger.warning(
                "Metrics found for databases missing from inventory",
                count=len(orphaned),
            )
        return bundles

    def load(
        self, inventory_file: str, metrics_dir: str
    ) -> Tuple[List[DatabaseProfile], Dict[str, MetricBundle]]:
        """Read all inputs once, in full, before analysis"""
        profiles = self.ingest_inventory_data(inventory_file)
        series = self.ingest_metrics_data(metrics_dir)
        return profiles, self.build_bundles(profiles, series)

    def create_sample_data(
        self, num_databases: int = 12, days: int = 30, seed: Optional[int] = 42
    ) -> Dict[str, str]:
        """Create a synthetic inventory and hourly metric exports"""
        logger.info("Creating sample data", num_databases=num_databases, days=days)
        rng = random.Random(seed)

        inventory_dir = self.data_dir / "inventory"
        metrics_dir = self.data_dir / "metrics"
        inventory_dir.mkdir(parents=True, exist_ok=True)
        metrics_dir.mkdir(parents=True, exist_ok=True)

        start = datetime(2024, 1, 1)
        inventory_records = []
        metric_rows: Dict[MetricKind, List[dict]] = {kind: [] for kind in MetricKind}

        for i in range(num_databases):
            shape = SAMPLE_SHAPES[i % len(SAMPLE_SHAPES)]
            server = f"sql-{shape['name']}-{i // len(SAMPLE_SHAPES) + 1:02d}"
            database = f"db-{shape['name']}"
            shape_days = shape.get("days", days)

            inventory_records.append(
                {
                    "server_name": server,
                    "database_name": database,
                    "edition": shape["edition"],
                    "sku": shape["sku"],
                    "capacity": shape["capacity"],
                    "elastic_pool": shape.get("pool", ""),
                    "max_size": int(shape["max_size_gb"] * 1024 ** 3),
                }
            )

            compute_kind = MetricKind.CPU if shape.get("cpu_only") else MetricKind.DTU
            if shape["edition"] not in ("Basic", "Standard", "Premium"):
                compute_kind = MetricKind.CPU

            hours = shape_days * 24
            for hour in range(hours):
                ts = start + timedelta(hours=hour)
                values = _sample_hour(shape["name"], hour, hours, ts, rng)
                stamp = ts.strftime("%Y-%m-%d %H:%M:%S")
                base = {"server_name": server, "database_name": database, "timestamp": stamp}

                metric_rows[compute_kind].append(
                    dict(base, value_percent=values["compute"], nominal_value=0.0)
                )
                metric_rows[MetricKind.SESSIONS].append(
                    dict(base, value_percent=values["sessions"], nominal_value=0.0)
                )
                metric_rows[MetricKind.WORKERS].append(
                    dict(base, value_percent=values["workers"], nominal_value=0.0)
                )
                storage_mb = values["storage_gb"] * 1024
                metric_rows[MetricKind.STORAGE].append(
                    dict(
                        base,
                        value_percent=round(values["storage_gb"] / shape["max_size_gb"] * 100, 2),
                        nominal_value=round(storage_mb, 1),
                    )
                )
                metric_rows[MetricKind.CONNECTIONS].append(
                    dict(base, value_percent=0.0, nominal_value=values["connections"])
                )
                metric_rows[MetricKind.LOG_WRITE].append(
                    dict(base, value_percent=values["log_write"], nominal_value=0.0)
                )

        inventory_file = inventory_dir / "sample_inventory.csv"
        pd.DataFrame(inventory_records).to_csv(inventory_file, index=False)

        for kind, rows in metric_rows.items():
            if rows:
                pd.DataFrame(rows).to_csv(metrics_dir / f"{kind.value}.csv", index=False)

        logger.info(
            "Sample data files created",
            databases=len(inventory_records),
            inventory_file=str(inventory_file),
            metrics_dir=str(metrics_dir),
        )

        return {"inventory_file": str(inventory_file), "metrics_dir": str(metrics_dir)}


SAMPLE_SHAPES = [
    {"name": "steady", "edition": "Standard", "sku": "S4", "capacity": 200, "max_size_gb": 250},
    {"name": "sparse", "edition": "GeneralPurpose", "sku": "GP_Gen5_2", "capacity": 2, "max_size_gb": 32},
    {"name": "bursty", "edition": "GeneralPurpose", "sku": "GP_S_Gen5_8", "capacity": 8, "max_size_gb": 64},
    {"name": "periodic", "edition": "Standard", "sku": "S3", "capacity": 100, "max_size_gb": 250},
    {"name": "weekday", "edition": "Standard", "sku": "S2", "capacity": 50, "max_size_gb": 250},
    {"name": "chaotic", "edition": "BusinessCritical", "sku": "BC_Gen5_8", "capacity": 8, "max_size_gb": 128},
    {"name": "constrained", "edition": "Standard", "sku": "S1", "capacity": 20, "max_size_gb": 250},
    {"name": "declining", "edition": "Premium", "sku": "P2", "capacity": 250, "max_size_gb": 500},
    {"name": "storagerunway", "edition": "Standard", "sku": "S3", "capacity": 100, "max_size_gb": 100},
    {"name": "pooled", "edition": "Standard", "sku": "ElasticPool", "capacity": 0, "max_size_gb": 250, "pool": "pool-a"},
    {"name": "fresh", "edition": "Standard", "sku": "S2", "capacity": 50, "max_size_gb": 250, "days": 3},
    {"name": "cpuonly", "edition": "Standard", "sku": "S6", "capacity": 400, "max_size_gb": 250, "cpu_only": True},
]


def _sample_hour(name: str, hour: int, total_hours: int, ts: datetime, rng) -> Dict[str, float]:
    """Synthetic utilization for one hour of one sample shape"""
    hour_of_day = ts.hour
    weekend = ts.weekday() >= 5
    storage_gb = 40.0
    connections = 30.0
    log_write = rng.uniform(2, 10)
    sessions = rng.uniform(5, 20)

    if name == "steady":
        compute = rng.gauss(20, 2)
    elif name == "sparse":
        compute = rng.uniform(1.5, 3.5)
        connections = rng.uniform(0, 2)
    elif name == "bursty":
        compute = rng.uniform(60, 90) if rng.random() < 0.08 else rng.uniform(0.5, 2)
        connections = rng.uniform(2, 8)
        log_write = rng.uniform(1, 5)
    elif name == "periodic":
        compute = 40 + 35 * math.sin(2 * math.pi * hour_of_day / 24) + rng.gauss(0, 3)
    elif name == "weekday":
        if weekend:
            compute = rng.uniform(0.5, 2)
        else:
            compute = rng.uniform(35, 55) if 8 <= hour_of_day < 18 else rng.uniform(15, 25)
    elif name == "chaotic":
        compute = 8 + rng.expovariate(1 / 25.0)
    elif name == "constrained":
        compute = rng.gauss(50, 5)
        sessions = rng.uniform(60, 85)
    elif name == "declining":
        compute = max(1.0, 70 * (1 - hour / total_hours) + rng.gauss(0, 2))
    elif name == "storagerunway":
        compute = rng.gauss(45, 5)
        storage_gb = 80 + 8 * hour / total_hours
    else:
        compute = rng.gauss(30, 6)

    return {
        "compute": round(min(max(compute, 0.0), 100.0), 2),
        "sessions": round(sessions, 2),
        "workers": round(sessions * 0.8, 2),
        "storage_gb": storage_gb,
        "connections": round(connections, 1),
        "log_write": round(log_write, 2),
    }
