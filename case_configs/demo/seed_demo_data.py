# case_configs/demo/seed_demo_data.py

from datetime import datetime, timedelta
from typing import List

from case_configs.storage.db import DEFAULT_DB_PATH
from case_configs.storage.models import Case
from case_configs.storage.repository import CaseConfigRepository, initialize_schema

DEMO_CONFIGS = [
    ("Config 1", "Hardware", 120.00),
    ("Config 2", "Hardware", 89.50),
    ("Config 3", "Software", 250.00),
    ("Config 4", "Software", 49.99),
    ("Config 5", "Support", 300.00),
    ("Config 6", "Support", 150.00),
    ("Config 7", "Licensing", 999.00),
    ("Config 8", "Licensing", 499.00),
    ("Config 9", "Training", 75.00),
    ("Config 10", "Training", 60.00),
    ("Config 11", "Hardware", 42.00),
    ("Config 12", "Software", 15.00),
]


def seed_demo_data(db_path: str = DEFAULT_DB_PATH) -> Case:
    """Insert the demo catalog and one open case. Returns the case."""
    initialize_schema(db_path)
    repository = CaseConfigRepository(db_path)

    start = datetime.now() - timedelta(days=len(DEMO_CONFIGS))
    entries: List[dict] = [
        {
            "label": label,
            "category": category,
            "amount": amount,
            "created_at": start + timedelta(days=index),
        }
        for index, (label, category, amount) in enumerate(DEMO_CONFIGS)
    ]
    repository.insert_catalog_entries(entries)
    return repository.create_case(subject="Demo case")


if __name__ == "__main__":
    case = seed_demo_data()
    print(f"Demo catalog inserted, open case id: {case.id}")
