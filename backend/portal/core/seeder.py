"""Seed reference data on first startup.

Loads categories, AI prompts, email templates and default settings from a
JSON fixture. Each table is seeded only while it is empty, so the seeder
is safe to run on every start.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_FIXTURE_PATH = Path(__file__).parent.parent.parent / "fixtures" / "seed_data.json"


def load_fixture(path: Path = _FIXTURE_PATH) -> Optional[dict]:
    if not path.exists():
        logger.debug("No seed fixture at %s", path)
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to read seed fixture: %s", e)
        return None


def seed_reference_data(db: Session, path: Path = _FIXTURE_PATH) -> Dict[str, int]:
    """Insert fixture rows into empty tables.

    Returns:
        Number of rows seeded per table (0 where the table was not empty).
    """
    from ..models import AiPrompt, Category, EmailTemplate, SystemSetting

    seeded = {"categories": 0, "prompts": 0, "email_templates": 0, "settings": 0}
    fixture = load_fixture(path)
    if not fixture:
        return seeded

    if db.query(Category).count() == 0:
        for row in fixture.get("categories", []):
            db.add(Category(**row))
            seeded["categories"] += 1

    if db.query(AiPrompt).count() == 0:
        for row in fixture.get("prompts", []):
            db.add(AiPrompt(**row))
            seeded["prompts"] += 1

    if db.query(EmailTemplate).count() == 0:
        for row in fixture.get("email_templates", []):
            db.add(EmailTemplate(**{**row, "content": json.dumps(row["content"], ensure_ascii=False)}))
            seeded["email_templates"] += 1

    if db.query(SystemSetting).count() == 0:
        for row in fixture.get("settings", []):
            db.add(SystemSetting(**row))
            seeded["settings"] += 1

    if any(seeded.values()):
        db.commit()
        logger.info("Seeded reference data", extra=seeded)
    else:
        logger.debug("Reference data present, skipping seed")
    return seeded
