#!/usr/bin/env python
from __future__ import annotations

import json

from hrms.db import SessionLocal, init_schema
from hrms.seeds import seed_demo_data


def run() -> dict:
    init_schema()
    with SessionLocal() as db:
        created = seed_demo_data(db)
    return {"created": created}


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2))
